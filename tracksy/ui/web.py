"""JSON API for Tracksy.

A lightweight Flask app exposing:
- Duration reports by application, domain and title
- Productivity breakdowns
- Classification of a single activity
- Sample ingestion, rule management and rule suggestions
- On-demand compaction
"""

import logging
import threading
import time
from datetime import date
from typing import Any

from flask import Flask, jsonify, request

from tracksy.core.classifier import classify
from tracksy.core.config import pipeline_settings
from tracksy.core.models import (
    ActivityAttributes,
    ActivitySample,
    ClassificationRule,
    Rating,
)
from tracksy.core.rule_suggestions import best_rule_suggestion, generate_rule_suggestions
from tracksy.persistence.store import ActivityStore
from tracksy.reporting.summary import ReportGenerator, day_bounds

logger = logging.getLogger(__name__)


def create_flask_app(store: ActivityStore, config: dict[str, Any]) -> Flask:
    app = Flask(__name__)
    generator = ReportGenerator(store, config)
    settings = pipeline_settings(config)

    def _range_from_args() -> tuple[int, int]:
        """Resolve ?start=&end= (ms) or ?date=YYYY-MM-DD (default today)."""
        start = request.args.get("start")
        end = request.args.get("end")
        if start is not None or end is not None:
            if start is None or end is None:
                raise ValueError("start and end required")
            return int(start), int(end)
        date_str = request.args.get("date")
        target = date.fromisoformat(date_str) if date_str else date.today()
        return day_bounds(target)

    @app.route("/api/report")
    def api_report():
        try:
            start, end = _range_from_args()
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        report = generator.report_for_range(start, end)
        return jsonify({"start": start, "end": end, **report.to_dict()})

    @app.route("/api/productivity")
    def api_productivity():
        try:
            start, end = _range_from_args()
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        breakdown = generator.productivity_for_range(start, end)
        return jsonify({"start": start, "end": end, **breakdown.to_dict()})

    @app.route("/api/classify", methods=["POST"])
    def api_classify():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "JSON object required"}), 400
        try:
            activity = ActivityAttributes.from_dict(data)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        result = classify(activity, store.get_rules(active_only=True))
        return jsonify(result.to_dict())

    @app.route("/api/rules")
    def api_rules():
        return jsonify([rule.to_dict() for rule in store.get_rules()])

    @app.route("/api/rules", methods=["POST"])
    def api_save_rule():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "JSON object required"}), 400
        data.setdefault("createdAt", int(time.time() * 1000))
        try:
            rule = ClassificationRule.from_dict(data)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        store.save_rule(rule)
        return jsonify(rule.to_dict())

    @app.route("/api/rules/suggestions", methods=["POST"])
    def api_rule_suggestions():
        """Suggest rules that would give a rated activity the same rating."""
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "JSON object required"}), 400
        rating = data.get("rating")
        if type(rating) is not int or rating not in (Rating.DISTRACTING, Rating.PRODUCTIVE):
            return jsonify({"error": "rating must be 0 or 1"}), 400
        try:
            activity = ActivityAttributes.from_dict(data)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400

        suggestions = generate_rule_suggestions(activity, rating)
        best = best_rule_suggestion(activity, rating)
        return jsonify({
            "suggestions": [s.to_dict() for s in suggestions],
            "best": best.to_dict() if best else None,
        })

    @app.route("/api/rules/<rule_id>", methods=["DELETE"])
    def api_delete_rule(rule_id):
        if not store.delete_rule(rule_id):
            return jsonify({"error": "rule not found"}), 404
        return jsonify({"ok": True})

    @app.route("/api/samples", methods=["POST"])
    def api_save_samples():
        """Append one sample or a list of samples; compacts once a batch is full."""
        data = request.get_json(silent=True)
        entries = data if isinstance(data, list) else [data]
        if not all(isinstance(e, dict) for e in entries):
            return jsonify({"error": "JSON object or array of objects required"}), 400
        try:
            samples = [ActivitySample.from_dict(e) for e in entries]
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400

        for sample in samples:
            store.save_sample(sample)

        compacted = False
        if store.needs_compaction(settings["compaction_batch_size"]):
            store.compact(settings["merge_gap_ms"])
            compacted = True
        return jsonify({"saved": len(samples), "compacted": compacted})

    @app.route("/api/compact", methods=["POST"])
    def api_compact():
        before, after = store.compact(settings["merge_gap_ms"])
        return jsonify({"before": before, "after": after})

    return app


def start_dashboard(
    store: ActivityStore, config: dict[str, Any], port: int = 5555
) -> threading.Thread:
    """Start the Flask API in a daemon thread."""
    flask_app = create_flask_app(store, config)

    def _run():
        flask_app.run(host="127.0.0.1", port=port, debug=False, use_reloader=False)

    t = threading.Thread(target=_run, daemon=True, name="tracksy-web")
    t.start()
    logger.info("API started at http://127.0.0.1:%d", port)
    return t
