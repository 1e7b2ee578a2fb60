"""
Composition Root for Finance Tracker

This module wires the components together exactly once per process:

    record store → net income ledger → transaction reconciler
                 → cash flow promotion / cash flow book / templates

DESIGN DECISION: There is no global ledger. create_app_components()
builds one ledger per store and hands the same instance to everything
that changes the balance. The presentation layer receives the
FinanceTrackerApp and calls its components directly.
"""

from decimal import Decimal
from typing import Optional

from pydantic import ValidationError as SettingsValidationError

from fintrack.cash_flow import CashFlowBook, CashFlowPromotion
from fintrack.config import Settings, get_settings
from fintrack.ledger import NetIncomeLedger
from fintrack.observability import configure_logging, get_logger
from fintrack.reconciler import TransactionReconciler
from fintrack.services.storage import (
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    RecordStore,
    StorageError,
)
from fintrack.templates import TemplateCatalog
from fintrack.validation import InputValidator


logger = get_logger(__name__)


class FinanceTrackerApp:
    """
    Everything the UI needs, sharing one store and one ledger.

    Lifecycle:
    1. start() → load the store (durable backends) and the balance, once
    2. use reconciler / promotion / cash_flow / templates
    3. shutdown() → flush the balance if a write is outstanding
    """

    def __init__(
        self,
        store: RecordStore,
        ledger: NetIncomeLedger,
        reconciler: TransactionReconciler,
        promotion: CashFlowPromotion,
        cash_flow: CashFlowBook,
        templates: TemplateCatalog,
    ):
        self.store = store
        self.ledger = ledger
        self.reconciler = reconciler
        self.promotion = promotion
        self.cash_flow = cash_flow
        self.templates = templates
        self._started = False

    async def start(self) -> Decimal:
        """
        Load persisted state. Returns the net income balance.

        Safe to call twice; the balance is only loaded the first time.
        A backend that cannot be read is logged. The balance then starts
        at 0 in memory only and the store refuses writes, so every
        commit raises PersistenceError until a load succeeds.
        """
        if self._started:
            return self.ledger.balance

        store_loaded = True
        if isinstance(self.store, GoogleSheetsRecordStore):
            try:
                await self.store.load()
            except StorageError as e:
                store_loaded = False
                logger.error("record_store_load_failed", error=str(e))

        # Stored records unknown: do not create a NetIncome record
        balance = await self.ledger.load(create_missing=store_loaded)
        self._started = True
        return balance

    async def shutdown(self) -> None:
        await self.ledger.close()

    async def __aenter__(self) -> "FinanceTrackerApp":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.shutdown()


def create_app_components(
    use_storage: bool = True,
    settings: Optional[Settings] = None,
) -> FinanceTrackerApp:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the configured durable backend.
                     Set to False for an in-memory app (tests, demos).
        settings: Settings to use (cached get_settings() if None)

    Returns:
        A FinanceTrackerApp; call start() before use
    """
    settings = settings or get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level, app_settings.log_json)

    store: Optional[RecordStore] = None
    if use_storage and app_settings.storage_backend == "google_sheets":
        try:
            store = GoogleSheetsRecordStore(GoogleSheetsClient(settings.google_sheets))
        except SettingsValidationError as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
    if store is None:
        store = InMemoryRecordStore()

    ledger_settings = settings.ledger
    validator = InputValidator()
    ledger = NetIncomeLedger(
        store,
        debounce_seconds=ledger_settings.debounce_seconds,
        flush_on_shutdown=ledger_settings.flush_on_shutdown,
        validator=validator,
    )

    return FinanceTrackerApp(
        store=store,
        ledger=ledger,
        reconciler=TransactionReconciler(store, ledger, validator),
        promotion=CashFlowPromotion(store, validator),
        cash_flow=CashFlowBook(store, validator),
        templates=TemplateCatalog(store, validator),
    )
