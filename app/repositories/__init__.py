from app.repositories.ledger_store import LedgerStore  # noqa: F401
