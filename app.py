"""Flask web application entry point for the bidding record tracker."""

from __future__ import annotations

from pathlib import Path
from typing import Any, List, Mapping, Optional

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from core.bidding_record import BiddingRecord, StatusDisputa
from core.database import Database
from core.errors import RecordNotFoundError, UnknownFieldError
from core.exporter import export_filename, to_tabular_text, write_export
from core.query import ASCENDING, DEFAULT_SORT_FIELD, aggregate, filter_records, sort_records
from core.record_editor import apply_field_change, normalize_record
from core.record_store import RecordStore
from utils.config_loader import load_config
from utils.logger import setup_logger


def _build_store(config: Mapping[str, Any], config_path: Path, logger) -> RecordStore:
    """Select the durable backend; an unreachable database falls back to files."""
    session_factory = None
    if config.get("storage", {}).get("backend") == "database":
        db = Database(dict(config))
        if db.test_connection():
            db.create_tables()
            session_factory = db.get_session_factory()
            logger.info("Database storage ready.")
        else:
            logger.warning("Database unavailable; falling back to file storage.")
    return RecordStore.from_config(
        config,
        base_dir=config_path.parent,
        logger=logger,
        session_factory=session_factory,
    )


def _query_view(store: RecordStore) -> List[BiddingRecord]:
    """Apply the table view's search, status filter and sort from query args."""
    records = filter_records(
        store.records,
        request.args.get("q", ""),
        status=request.args.get("status") or None,
    )
    sort_field = request.args.get("sort")
    if sort_field:
        records = sort_records(records, sort_field, request.args.get("order", ASCENDING))
    return records


def create_app(
    *,
    config_path: str | Path = "config.json",
    config: Optional[Mapping[str, Any]] = None,
    store: Optional[RecordStore] = None,
) -> Flask:
    """Application factory so tests can inject a prepared store."""
    config_path = Path(config_path)
    config_data = dict(config) if config else load_config(config_path)
    log_dir = Path(config_data.get("paths", {}).get("log_dir", "data/logs"))
    logger = setup_logger("WebApp", log_dir=log_dir)

    store = store or _build_store(config_data, config_path, logger)
    store.load()

    records_cfg = config_data.get("records", {})
    export_cfg = config_data.get("export", {})
    export_dir = config_path.parent / export_cfg.get("export_dir", "data/exports")

    app = Flask(__name__)
    app.config["LOGGER"] = logger
    app.config["RECORD_STORE"] = store

    def _persist():
        if store.save_snapshot():
            return None
        return jsonify({"success": False, "message": "Falha ao salvar a base de dados"}), 500

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return jsonify({"success": False, "message": "Registro não encontrado"}), 404

    @app.errorhandler(UnknownFieldError)
    def handle_unknown_field(exc: UnknownFieldError):
        return jsonify({"success": False, "message": str(exc)}), 400

    @app.get("/api/options")
    def options():
        return jsonify(
            {
                "success": True,
                "data": {
                    "statuses": [status.value for status in StatusDisputa],
                    "entities": list(records_cfg.get("entities", [])),
                    "template": store.template.to_dict(),
                    "sort": {"field": DEFAULT_SORT_FIELD, "order": ASCENDING},
                },
            }
        )

    @app.get("/api/biddings")
    def list_biddings():
        records = _query_view(store)
        data = [record.to_dict() for record in records]
        return jsonify({"success": True, "data": data, "count": len(data)})

    @app.get("/api/biddings/<record_id>")
    def get_bidding(record_id: str):
        record = store.get(record_id)
        if record is None:
            raise RecordNotFoundError(record_id)
        return jsonify({"success": True, "data": record.to_dict()})

    @app.post("/api/biddings")
    def create_bidding():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"success": False, "message": "Dados inválidos"}), 400
        record = store.create(payload)
        failure = _persist()
        if failure:
            return failure
        return jsonify({"success": True, "data": record.to_dict()}), 201

    @app.post("/api/biddings/preview")
    def preview_bidding():
        """Recalculate a form in progress without saving it."""
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict) or not payload.get("field"):
            return jsonify({"success": False, "message": "Dados inválidos"}), 400
        current = payload.get("record")
        base = normalize_record(current) if isinstance(current, dict) else store.template
        record = apply_field_change(base, payload["field"], payload.get("value"))
        return jsonify({"success": True, "data": record.to_dict()})

    @app.put("/api/biddings/<record_id>")
    def update_bidding(record_id: str):
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return jsonify({"success": False, "message": "Dados inválidos"}), 400
        record = store.update(record_id, payload)
        failure = _persist()
        if failure:
            return failure
        return jsonify({"success": True, "data": record.to_dict()})

    @app.delete("/api/biddings/<record_id>")
    def delete_bidding(record_id: str):
        payload = request.get_json(silent=True)
        body_confirmed = isinstance(payload, dict) and payload.get("confirm") is True
        confirmed = request.args.get("confirm", "").lower() == "true" or body_confirmed
        if not confirmed:
            return jsonify({"success": False, "message": "Confirmação obrigatória para remover"}), 400
        if not store.delete(record_id):
            raise RecordNotFoundError(record_id)
        failure = _persist()
        if failure:
            return failure
        return jsonify({"success": True, "message": "Registro removido"})

    @app.get("/api/dashboard")
    def dashboard():
        summary = aggregate(store.records)
        return jsonify({"success": True, "data": summary.to_dict()})

    @app.get("/api/export")
    def export_csv():
        is_backup = request.args.get("scope", "backup") != "report"
        if is_backup:
            records = store.records
            prefix = export_cfg.get("backup_prefix", "LICIT_PRO_BACKUP")
        else:
            records = _query_view(store)
            prefix = export_cfg.get("report_prefix", "relatorio_licitacoes")
        if not records:
            return Response(status=204)
        if is_backup:
            # Keep a server-side copy of full backups.
            write_export(records, export_dir, prefix)
        filename = export_filename(prefix)
        logger.info("Exporting %d record(s) to %s", len(records), filename)
        return Response(
            to_tabular_text(records),
            content_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        if isinstance(exc, HTTPException):
            return exc
        logger.error("Unhandled error: %s", exc, exc_info=True)
        return jsonify({"success": False, "message": str(exc)}), 500

    return app


if __name__ == "__main__":  # pragma: no cover
    application = create_app()
    application.run(host="0.0.0.0", port=5000, debug=False, use_reloader=False)
