"""Transactions API routes, including the bulk import endpoint."""

from __future__ import annotations

from flask import current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from ...infra.repositories.transaction import SQLModelTransactionRepository
from ...logging_config import get_logger
from ...models.transaction import Transaction
from . import bp

logger = get_logger(__name__)


def _repository() -> SQLModelTransactionRepository:
    return SQLModelTransactionRepository(current_app.extensions["finimport.session_factory"])


def _serialize(txn: Transaction) -> dict:
    return {
        "id": txn.id,
        "type": txn.txn_type,
        "amount": txn.amount,
        "description": txn.description,
        "date": txn.occurred_at.isoformat() if txn.occurred_at else None,
        "tags": txn.tags or [],
        "is_recurring": txn.is_recurring,
        "account_id": txn.account_id,
        "category_id": txn.category_id,
    }


@bp.get("")
def list_transactions():
    """Return stored transactions, most recent first."""

    limit = request.args.get("limit", default=100, type=int)
    offset = request.args.get("offset", default=0, type=int)
    rows = _repository().list_all(limit=limit, offset=offset)
    return jsonify([_serialize(txn) for txn in rows])


@bp.post("/import")
def import_transactions():
    """Persist a batch of validated import records; responds ``{"imported": n}``."""

    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400

    transactions = body.get("transactions")
    if not isinstance(transactions, list) or not transactions:
        return jsonify({"error": "No transactions were provided"}), 400

    try:
        imported = _repository().bulk_import(transactions)
    except SQLAlchemyError:
        logger.exception("Bulk import failed")
        return jsonify({"error": "Internal server error while importing transactions"}), 500

    return jsonify({"imported": imported})
