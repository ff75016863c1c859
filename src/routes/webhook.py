# src/routes/webhook.py

from flask import Blueprint, request, current_app

webhook_bp = Blueprint("webhook", __name__)


@webhook_bp.route("/", methods=["GET"])
def handle_verification_challenge():
    """
    Hub verification for subscribe/unsubscribe requests.

    The hub confirms intent asynchronously by calling the callback URL with a
    challenge that must be echoed back verbatim. Nothing here touches the
    subscription state: the engine already recorded the subscription when the
    hub accepted the request.
    """
    challenge = request.args.get("hub.challenge")
    if not challenge:
        current_app.logger.error("❌ Missing hub.challenge")
        return "Missing hub.challenge", 400, {"Content-Type": "text/plain"}

    current_app.logger.info(
        "✅ Hub verification: mode=%s, topic=%s, lease=%s",
        request.args.get("hub.mode"),
        request.args.get("hub.topic"),
        request.args.get("hub.lease_seconds"),
    )
    return challenge, 200, {"Content-Type": "text/plain"}


@webhook_bp.route("/<path:_path>", methods=["OPTIONS"])
def preflight(_path):
    """CORS preflight for any path; headers are added by the after-request hook."""
    return "", 200
