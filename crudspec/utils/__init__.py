from crudspec.utils import logging, serializers, sync_tools

__all__ = ("logging", "serializers", "sync_tools")
