# -*- coding: utf-8 -*-
from contextlib import contextmanager
from typing import Generator


class SaveOffAttributesMixin:
    @contextmanager
    def push_attributes(self, **kwargs) -> Generator[None, None, None]:
        for k in kwargs:
            if not hasattr(self, k):
                raise AttributeError(
                    "requested to save unfound attribute %s of object %s" % (k, self)
                )
        saved_attributes = {}
        for k in kwargs:
            saved_attributes[k] = getattr(self, k)
        for k, v in kwargs.items():
            setattr(self, k, v)
        try:
            yield
        finally:
            for k, v in saved_attributes.items():
                setattr(self, k, v)
