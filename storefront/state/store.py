import logging
from typing import Callable, Generic, List, Optional, TypeVar

from .auth import Action, RootState, root_reducer

logger = logging.getLogger(__name__)

S = TypeVar("S")

class Store(Generic[S]):
    """
    Conteneur d'état explicite, possédé par son appelant (une requête, un test).
    - dispatch(action): applique le réducteur puis notifie les abonnés
    - subscribe(listener): retourne une fonction de désabonnement
    """

    def __init__(self, reducer: Callable[[Optional[S], Action], S] = root_reducer, initial: Optional[S] = None):
        self._reducer = reducer
        self._state: S = initial if initial is not None else reducer(None, None)
        self._listeners: List[Callable[[S], None]] = []

    @property
    def state(self) -> S:
        return self._state

    def dispatch(self, action: Action) -> S:
        self._state = self._reducer(self._state, action)
        logger.debug("state.dispatch action=%s", type(action).__name__)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    def subscribe(self, listener: Callable[[S], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
        return _unsubscribe

def create_store(initial: Optional[RootState] = None) -> "Store[RootState]":
    return Store(root_reducer, initial)
