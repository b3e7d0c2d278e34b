from sqlshell.utils import executable, logging, serializers

__all__ = ("executable", "logging", "serializers")
