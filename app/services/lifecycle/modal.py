# ============================================================================
# Create / Edit / View Modal Lifecycle
# ============================================================================
"""
Owns the open/closed state machine of the create/edit/view modal for one
entity kind and routes form submits to the gateway.
"""
from typing import Any, Callable, Dict, Optional
import logging

from app.core.exceptions import ConcurrentSubmitError, InvalidStateError
from app.services.lifecycle.gateway import OperationGateway
from app.services.lifecycle.models import CLOSED_SESSION, Entity, ModalMode, ModalSession

logger = logging.getLogger(__name__)


class ModalLifecycle:
    """
    At most one session is open at a time. Edit and view sessions hold a
    snapshot of the entity taken when the modal opened.
    """

    def __init__(
        self,
        gateway: OperationGateway,
        on_refresh: Optional[Callable[[], None]] = None
    ):
        self.gateway = gateway
        self.on_refresh = on_refresh
        self._session: ModalSession = CLOSED_SESSION

    @property
    def session(self) -> ModalSession:
        return self._session

    @property
    def is_open(self) -> bool:
        return self._session.is_open

    def open_create(self) -> ModalSession:
        return self._open(ModalSession(mode=ModalMode.CREATE))

    def open_edit(self, entity: Entity) -> ModalSession:
        return self._open(ModalSession(mode=ModalMode.EDIT, entity=entity.snapshot()))

    def open_view(self, entity: Entity) -> ModalSession:
        return self._open(ModalSession(mode=ModalMode.VIEW, entity=entity.snapshot()))

    def close(self) -> None:
        self._session = CLOSED_SESSION

    def _open(self, session: ModalSession) -> ModalSession:
        if self._session.is_open:
            logger.debug(f"Replacing open {self._session.mode.value} session for {self.gateway.kind}")
        self._session = session
        return session

    async def submit(self, form_data: Dict[str, Any]) -> Entity:
        """
        Submit the open create/edit form.

        Args:
            form_data: Raw form values

        Returns:
            The entity returned by the gateway

        Raises:
            InvalidStateError: no session is open, or the session is view-only
            ConcurrentSubmitError: a submit for this session is still in flight
        """
        session = self._session
        if not session.is_open:
            raise InvalidStateError("Cannot submit: no modal session is open")
        if session.mode is ModalMode.VIEW:
            raise InvalidStateError("Cannot submit a view-only session")
        if session.submitting:
            raise ConcurrentSubmitError()

        session.submitting = True
        try:
            data = self.gateway.transform_form_data(form_data)
            if session.mode is ModalMode.CREATE:
                result = await self.gateway.create(data)
            else:
                result = await self.gateway.update(session.entity.id, data)
        except Exception as e:
            logger.error(f"Failed to {session.mode.value} {self.gateway.kind}: {e}")
            raise
        finally:
            session.submitting = False

        logger.info(f"{self.gateway.kind} {session.mode.value} succeeded ({result.id})")

        # The user may have closed or replaced the modal while we waited
        if self._session is session:
            self.close()
        if self.on_refresh:
            self.on_refresh()
        return result
