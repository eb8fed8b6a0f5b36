"""Presenter — abstract interface for anything that renders session state."""
from abc import ABC, abstractmethod

from src.session_models import SessionSnapshot


class Presenter(ABC):
    @abstractmethod
    async def render(self, snapshot: SessionSnapshot) -> None:
        """Called after every state transition. Must not emit session events itself."""
        ...
