from .controller import DialogueController
from .locks import SenderLocks

__all__ = ["DialogueController", "SenderLocks"]
