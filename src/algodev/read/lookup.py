from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from algosdk.logic import get_application_address

from .. import constants as const
from ..codec import decode_deployment_note
from ..models import AppLookup, AppMetadata

if TYPE_CHECKING:  # pragma: no cover
    from algokit_utils import SigningAccount
    from algosdk.v2client.indexer import IndexerClient

logger = logging.getLogger(__name__)


def _paginate(
    fetch: Callable[[str | None], Mapping[str, Any]], key: str
) -> Iterator[Mapping[str, Any]]:
    """
    Yield every item under `key` across indexer pages, following `next-token`.
    """
    token: str | None = None
    while True:
        response = fetch(token)
        items = response.get(key) or []
        yield from items
        token = response.get(const.INDEXER_NEXT_TOKEN)
        if not token or not items:
            return
        logger.debug("Fetching next indexer page for %s (token=%s)", key, token)


def _resolve_address(creator: SigningAccount | str) -> str:
    if isinstance(creator, str):
        return creator
    return creator.address


def _is_creation_txn(txn: Mapping[str, Any], app_id: int) -> bool:
    if txn.get("created-application-index") == app_id:
        return True
    appl = txn.get("application-transaction")
    return isinstance(appl, Mapping) and appl.get("application-id") == 0


def _txn_position(txn: Mapping[str, Any]) -> tuple[int, int]:
    return int(txn.get("confirmed-round", 0)), int(txn.get("intra-round-offset", 0))


def _app_transactions(
    indexer: IndexerClient, *, address: str, app_id: int, created_round: int
) -> list[Mapping[str, Any]]:
    return list(
        _paginate(
            lambda token: indexer.search_transactions(
                min_round=created_round,
                txn_type=const.APPL_TXN_TYPE,
                application_id=app_id,
                address_role="sender",
                address=address,
                next_page=token,
            ),
            "transactions",
        )
    )


def get_creator_apps(
    indexer: IndexerClient, creator: SigningAccount | str
) -> AppLookup:
    """
    Build a name => app metadata lookup for every app `creator` deployed with a
    deployment note on its creation transaction.

    Note: this makes one indexer query per page of apps plus one per app, so it's
    expensive. Call it once and pass the lookup to subsequent deploys.

    Deleted apps are included (flagged `deleted`). If several apps share a name, the most
    recently created one wins. Indexer errors propagate unchanged.
    """
    address = _resolve_address(creator)
    apps: dict[str, AppMetadata] = {}

    created_apps = list(
        _paginate(
            lambda token: indexer.lookup_account_application_by_creator(
                address, include_all=True, next_page=token
            ),
            "applications",
        )
    )
    created_apps.sort(key=lambda app: int(app.get("created-at-round", 0)))

    for app in created_apps:
        app_id = int(app["id"])
        created_round = int(app.get("created-at-round", 0))

        transactions = _app_transactions(
            indexer, address=address, app_id=app_id, created_round=created_round
        )
        creation_txn = next(
            (t for t in transactions if _is_creation_txn(t, app_id)), None
        )
        if creation_txn is None:
            logger.debug("No creation transaction found for app %s", app_id)
            continue

        created_metadata = decode_deployment_note(creation_txn.get("note"))
        if created_metadata is None or not created_metadata.name:
            continue

        transactions.sort(key=_txn_position, reverse=True)
        latest_txn = transactions[0]
        # Most recent create/update note for this name; deletes carry none.
        notes = (decode_deployment_note(t.get("note")) for t in transactions)
        current_metadata = next(
            (m for m in notes if m is not None and m.name == created_metadata.name),
            created_metadata,
        )

        apps[created_metadata.name] = AppMetadata.from_deploy_metadata(
            current_metadata,
            app_id=app_id,
            app_address=get_application_address(app_id),
            created_round=int(creation_txn.get("confirmed-round", created_round)),
            updated_round=_txn_position(latest_txn)[0],
            created_metadata=created_metadata,
            deleted=bool(app.get("deleted", False)),
        )

    return AppLookup(creator=address, apps=apps)
