from __future__ import annotations
"""server/cnc_telemetry/application/services/subscription_registry.py
~~~~~~~~~~~~~~~~~~~~~~~~
Registre des abonnements live : connexion -> machine (une seule à la fois).

Objet unique construit au démarrage (cf. application.runtime), accès
synchronisé par un verrou : appelé depuis la boucle asyncio (handlers
WebSocket, moteur de distribution) comme depuis le threadpool.

Invariants :
- une connexion est abonnée à au plus UNE machine ;
- subscribe() sur une connexion non enregistrée (déjà déconnectée) ne crée
  rien : une déconnexion concurrente ne laisse pas d'entrée orpheline.
"""
import logging
import threading
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)


class LiveChannel(Protocol):
    """Transport vers UNE connexion ; offer() ne doit jamais bloquer."""
    connection_id: str

    def offer(self, payload: dict[str, Any]) -> None: ...


class SubscriptionRegistry:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._connections: dict[str, LiveChannel] = {}
        self._machine_of: dict[str, str] = {}
        self._subscribers: dict[str, set[str]] = {}

    # --- Connexions -----------------------------------------------------------

    def register(self, connection: LiveChannel) -> None:
        with self._lock:
            self._connections[connection.connection_id] = connection

    def on_disconnect(self, connection_id: str) -> None:
        """Oublie la connexion et son éventuel abonnement (idempotent)."""
        with self._lock:
            self._connections.pop(connection_id, None)
            self._detach(connection_id)
        logger.debug("live.disconnected", extra={"connection_id": connection_id})

    # --- Abonnements ----------------------------------------------------------

    def subscribe(self, connection_id: str, machine_id: str) -> bool:
        """Remplace l'abonnement courant. False si la connexion n'est pas (plus) enregistrée."""
        with self._lock:
            if connection_id not in self._connections:
                return False
            self._detach(connection_id)
            self._machine_of[connection_id] = machine_id
            self._subscribers.setdefault(machine_id, set()).add(connection_id)
            return True

    def unsubscribe(self, connection_id: str, machine_id: str) -> bool:
        """Retire l'abonnement uniquement s'il vise bien machine_id."""
        with self._lock:
            if self._machine_of.get(connection_id) != machine_id:
                return False
            self._detach(connection_id)
            return True

    def subscription_of(self, connection_id: str) -> Optional[str]:
        with self._lock:
            return self._machine_of.get(connection_id)

    def subscribers_of(self, machine_id: str) -> list[LiveChannel]:
        """Instantané des connexions abonnées (itérable hors verrou)."""
        with self._lock:
            ids = self._subscribers.get(machine_id, ())
            return [self._connections[cid] for cid in ids if cid in self._connections]

    def drop_machine(self, machine_id: str) -> int:
        """Désabonne tout le monde d'une machine supprimée ; retourne le nombre d'entrées retirées."""
        with self._lock:
            ids = self._subscribers.pop(machine_id, set())
            for cid in ids:
                self._machine_of.pop(cid, None)
            return len(ids)

    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    # --- interne (verrou déjà pris) -------------------------------------------

    def _detach(self, connection_id: str) -> None:
        previous = self._machine_of.pop(connection_id, None)
        if previous is None:
            return
        peers = self._subscribers.get(previous)
        if peers is not None:
            peers.discard(connection_id)
            if not peers:
                del self._subscribers[previous]
