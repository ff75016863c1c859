# src/routes/subscriptions.py

from flask import Blueprint, request, current_app, jsonify
from werkzeug.exceptions import HTTPException

from src.controllers.subscription_controller import ApiResponse, error_body

subscriptions_bp = Blueprint("subscriptions", __name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def get_handlers():
    """The serving implementation picked once in create_app."""
    return current_app.extensions["subscription_handlers"]


def render(api_response: ApiResponse):
    if api_response.body is None:
        return current_app.response_class(status=api_response.status_code)
    return jsonify(api_response.body), api_response.status_code


@subscriptions_bp.after_app_request
def add_cors_headers(response):
    for header, value in CORS_HEADERS.items():
        response.headers[header] = value
    return response


@subscriptions_bp.route("/subscribe", methods=["POST"])
def subscribe():
    channel_id = request.args.get("channel_id", "").strip()
    current_app.logger.info("📥 Subscribe request for %s", channel_id or "<missing>")
    return render(get_handlers().subscribe(channel_id))


@subscriptions_bp.route("/unsubscribe", methods=["DELETE"])
def unsubscribe():
    channel_id = request.args.get("channel_id", "").strip()
    current_app.logger.info("📤 Unsubscribe request for %s", channel_id or "<missing>")
    return render(get_handlers().unsubscribe(channel_id))


@subscriptions_bp.route("/subscriptions", methods=["GET"])
def list_subscriptions():
    return render(get_handlers().list_subscriptions())


@subscriptions_bp.route("/renew", methods=["POST"])
def renew():
    current_app.logger.info("🔄 Renewal scan requested")
    return render(get_handlers().renew())


@subscriptions_bp.app_errorhandler(HTTPException)
def handle_http_error(e):
    return jsonify(error_body(e.description)), e.code


@subscriptions_bp.app_errorhandler(Exception)
def handle_unexpected_error(e):
    current_app.logger.exception("❌ Unhandled error while serving %s %s", request.method, request.path)
    return jsonify(error_body(f"Internal server error: {e}")), 500
