# -*- coding: utf-8 -*-
import logging
from typing import Optional

from IPython.core.inputtransformer2 import TransformerManager

logger = logging.getLogger(__name__)
logger.setLevel(logging.WARNING)


_TRANSFORMER_MANAGER: Optional[TransformerManager] = None


def _transformer_manager() -> TransformerManager:
    global _TRANSFORMER_MANAGER
    if _TRANSFORMER_MANAGER is None:
        _TRANSFORMER_MANAGER = TransformerManager()
    return _TRANSFORMER_MANAGER


def sanitize_cell_text(text: str) -> str:
    """
    Rewrite IPython-only syntax (``%magics``, ``!shell``, ``obj?``) into
    plain Python calls, leaving ordinary code untouched. Text IPython itself
    cannot transform is returned as-is and left for the parser to reject.
    """
    try:
        return _transformer_manager().transform_cell(text)
    except Exception as e:
        logger.info("failed to transform cell text: %s", e)
        return text
