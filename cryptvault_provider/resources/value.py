"""
Value Reconciler — named encrypted values stored under a vault.

Value names follow the value-path grammar (``VALUES.foo.bar``). Values
of type ``JSON`` must carry a valid JSON document as passframe.

Security Note:
    Never log passframes or creator keys. Only log value ids and names.
"""
import logging
from typing import Optional

import orjson

from ..api import CryptVaultApi
from ..diagnostics import Diagnostics
from ..exceptions import (
    ConsistencyError,
    InvalidConfigError,
    InvalidPatternError,
    RemoteError,
    RemoteNotFoundError,
    ValidationError,
)
from ..models import ResourceState, Value, ValueType, utcnow
from ..rights import validate_value_name
from ..vault.session import ProtectedSession, open_session
from ..vault.sync import sync_values
from .base import ReconcileResult, capture_errors, require_fields, require_import_id

logger = logging.getLogger("cryptvault.provider")

_REQUIRED = {
    "name": "name is required for a value",
    "vault_id": "vault id is required for a value",
    "creator_key": "creator private key is required for a value",
    "passframe": "passframe is required for a value",
    "type": "type is required for a value (String or JSON)",
}


def validate_value(data: Value) -> None:
    """Check required fields, name grammar, type and JSON content.

    Raises:
        InvalidConfigError: Listing every problem found.
    """
    require_fields(data, _REQUIRED)
    errors: list[Exception] = []
    try:
        validate_value_name(data.name)
    except InvalidPatternError as err:
        errors.append(err)
    try:
        value_type = ValueType(data.type)
    except ValueError:
        errors.append(ValidationError("type", f"type must be String or JSON, got {data.type!r}"))
    else:
        if value_type is ValueType.JSON:
            try:
                orjson.loads(data.passframe)
            except orjson.JSONDecodeError as err:
                errors.append(
                    ValidationError("passframe", f"passframe of a JSON value is not valid JSON: {err}")
                )
    error = InvalidConfigError.join(errors)
    if error is not None:
        raise error


class ValueResource:
    """Reconciler for values.

    Args:
        api: CryptVault client.
        timeout: Per-call timeout (seconds) threaded into every remote call.
        type_name: Resource type name exposed to the host.
    """

    def __init__(
        self,
        api: CryptVaultApi,
        timeout: Optional[float] = None,
        type_name: str = "cryptvault_cloud_value",
    ):
        self._api = api
        self._timeout = timeout
        self.type_name = type_name

    def _session(self, data: Value) -> ProtectedSession:
        return open_session(self._api, data.creator_key, data.vault_id, self._timeout)

    async def _resolve_id(self, session: ProtectedSession, data: Value) -> str:
        """Known id, or the id of the remote value with the same name."""
        if data.id:
            return data.id
        if not data.name:
            raise ValidationError("id", "value id or name is required")
        remote = await session.get_value_by_name(data.name)
        logger.debug("Resolved value name=%s to id=%s", data.name, remote.id)
        return remote.id

    async def create(self, desired: Value) -> ReconcileResult[Value]:
        """Store a new value."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "create value"):
            data = desired.model_copy(deep=True)
            validate_value(data)
            session = self._session(data)
            data.id = await session.add_value(data.name, data.passframe, ValueType(data.type))
            data.last_updated = utcnow()
            data.state = ResourceState.CREATED
            logger.info("Value created: id=%s name=%s", data.id, data.name)
            return ReconcileResult(data, diagnostics)
        return ReconcileResult(None, diagnostics)

    async def read(self, current: Value) -> ReconcileResult[Value]:
        """Refresh the value and run a synchronize pass on it."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "read value"):
            data = current.model_copy(deep=True)
            session = self._session(data)
            try:
                value_id = await self._resolve_id(session, data)
                remote = await session.get_value_by_id(value_id)
            except RemoteNotFoundError:
                logger.info("Value id=%s name=%s no longer exists remotely", data.id, data.name)
                return ReconcileResult(None, diagnostics, removed=True)

            if data.state is ResourceState.DELETED:
                raise ConsistencyError(
                    f"value {remote.id} was deleted but still resolves remotely"
                )

            data.id = remote.id
            data.name = remote.name
            data.type = remote.type
            if remote.value:
                try:
                    data.passframe = await session.get_decrypted_passframe(remote.value)
                except RemoteError as err:
                    diagnostics.add_warning(
                        "Passframe Not Refreshed",
                        f"passframe of value {remote.id} could not be decrypted: {err}",
                    )

            sync_diagnostics = await sync_values(session, [remote.id])
            diagnostics.extend(sync_diagnostics)
            data.last_updated = utcnow()
            data.state = ResourceState.CREATED if sync_diagnostics else ResourceState.SYNCED
            return ReconcileResult(data, diagnostics)
        return ReconcileResult(None, diagnostics)

    async def update(self, desired: Value) -> ReconcileResult[Value]:
        """Replace name, passframe and type of the value."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "update value"):
            data = desired.model_copy(deep=True)
            validate_value(data)
            session = self._session(data)
            value_id = await self._resolve_id(session, data)
            new_id = await session.update_value(
                value_id, data.name, data.passframe, ValueType(data.type),
            )
            data.id = new_id or value_id
            data.last_updated = utcnow()
            data.state = ResourceState.SYNCED
            logger.info("Value updated: id=%s name=%s", data.id, data.name)
            return ReconcileResult(data, diagnostics)
        return ReconcileResult(None, diagnostics)

    async def delete(self, current: Value) -> Diagnostics:
        """Delete the value; on success ``current`` is marked deleted."""
        diagnostics = Diagnostics()
        with capture_errors(diagnostics, "delete value"):
            session = self._session(current)
            value_id = await self._resolve_id(session, current)
            await session.delete_value(value_id)
            current.id = value_id
            current.state = ResourceState.DELETED
            logger.info("Value deleted: id=%s", value_id)
        return diagnostics

    def import_state(self, resource_id: str) -> Value:
        return Value(id=require_import_id(resource_id, "value"), state=ResourceState.CREATED)
