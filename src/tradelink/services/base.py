"""BaseService: foundation for all tradelink services.

Every service receives a :class:`Network` at construction time. The
Network provides transactional access to the relationship store, the
account directory, and the connection graph. Services own their
transaction boundaries via ``self._network.transaction()``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tradelink.infrastructure.network import Network

logger = logging.getLogger(__name__)


class BaseService:
    """Base for all service-layer classes.

    Usage::

        class ConnectionService(BaseService):
            def send_request(self, requester, recipient) -> ServiceResult:
                with self._network.transaction() as txn:
                    ...
    """

    def __init__(self, network: Network) -> None:
        self._network = network

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Call a plugin hook after commit. No-op if plugins are not initialized.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        plugins = self._network.plugins
        if plugins is None:
            return
        try:
            getattr(plugins.hook, hook_name)(**payload)
        except Exception:
            logger.debug("Plugin hook failed for %s", hook_name, exc_info=True)
            warnings.append(f"Plugin hook failed for {hook_name}")
