"""Main Quart application for the guide Q&A assistant."""
from quart import Quart, render_template, request, jsonify
from pydantic import BaseModel, ValidationError
import logging
import structlog

from guide_qa import config
from guide_qa.conversation import ConversationOrchestrator, TurnRejected

# Configure structured logging
logging.basicConfig(level=config.LOG_LEVEL, format="%(message)s")
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()

# Initialize Quart app
app = Quart(
    __name__,
    template_folder=str(config.WEB_DIR / "templates"),
    static_folder=str(config.WEB_DIR / "static"),
)

# Single conversation for the lifetime of the process
orchestrator = ConversationOrchestrator()


class ChatRequest(BaseModel):
    message: str


@app.before_serving
async def load_knowledge_base():
    """Start loading the PDF without blocking server startup."""
    app.add_background_task(orchestrator.initialize)


@app.route("/")
async def index():
    """Render the main chat interface."""
    return await render_template(
        "chat.html",
        static_version=config.STATIC_VERSION,
        chat_model=config.CHAT_MODEL,
        guide_name=orchestrator.guide_name,
        max_message_length=config.MAX_MESSAGE_LENGTH,
    )


@app.route("/api/messages", methods=["GET"])
async def get_messages():
    """Return the conversation and loading state.

    Returns JSON:
    {
        "messages": [{"role": "model", "content": "...", "sources": [...]}],
        "is_loading": false,
        "state": "ready",
        "document_count": 42,
        "error": null
    }
    """
    return jsonify(orchestrator.snapshot())


@app.route("/api/chat", methods=["POST"])
async def chat():
    """Answer one question about the guide.

    Expects JSON body:
    {
        "message": "user message text"
    }

    Returns JSON:
    {
        "response": "model answer text",
        "sources": [...],
        "messages": [...]
    }
    """
    data = await request.get_json(silent=True)

    try:
        chat_request = ChatRequest.model_validate(data or {})
    except ValidationError as e:
        logger.error("invalid_chat_request", errors=e.errors(include_url=False))
        return jsonify({"error": "Missing 'message' in request body"}), 400

    user_message = chat_request.message

    if not user_message.strip():
        return jsonify({"error": "Message cannot be empty"}), 400

    # Limit message length (basic security)
    if len(user_message) > config.MAX_MESSAGE_LENGTH:
        return jsonify({
            "error": f"Message too long (max {config.MAX_MESSAGE_LENGTH} characters)"
        }), 400

    logger.info(
        "chat_request_received",
        message_length=len(user_message),
        user_message_preview=user_message[:100],
    )

    try:
        turn = await orchestrator.handle_turn(user_message)
    except TurnRejected as e:
        status = 409 if e.busy else 400
        return jsonify({"error": str(e)}), status

    logger.info(
        "chat_response_sent",
        response_length=len(turn.content),
        source_count=len(turn.sources or ()),
    )

    return jsonify({
        "response": turn.content,
        "sources": [source.to_dict() for source in turn.sources or ()],
        "messages": [t.to_dict() for t in orchestrator.messages],
    })


@app.route("/api/documents", methods=["GET"])
async def list_documents():
    """List the page chunks held by the document store."""
    return jsonify({
        "documents": [
            {
                "id": chunk.id,
                "title": chunk.title,
                "page_number": chunk.page_number,
                "length": len(chunk.content),
            }
            for chunk in orchestrator.store
        ]
    })


@app.route("/health/ready")
async def health_ready():
    """Readiness probe - check if app can answer questions.

    Checks:
    - The knowledge base is loaded
    - A Gemini credential is configured
    - The configured chat model is available
    """
    checks = {
        "status": "healthy",
        "knowledge_base": not orchestrator.store.is_empty(),
        "state": orchestrator.state.value,
        "gemini": False,
    }

    if not checks["knowledge_base"]:
        checks["status"] = "unhealthy"
        checks["error"] = orchestrator.last_error or "Knowledge base not loaded"
        return jsonify(checks), 503

    try:
        models = await orchestrator.client.list_models()
        checks["gemini"] = True

        if config.CHAT_MODEL not in models:
            checks["status"] = "unhealthy"
            checks["error"] = f"Missing chat model: {config.CHAT_MODEL}"

        status_code = 200 if checks["status"] == "healthy" else 503
        return jsonify(checks), status_code

    except Exception as e:
        logger.error("health_check_failed", error=str(e))
        checks["status"] = "unhealthy"
        checks["error"] = str(e)
        return jsonify(checks), 503


@app.route("/health/live")
async def health_live():
    """Liveness probe - check if app is running."""
    return jsonify({"status": "alive"}), 200


@app.errorhandler(404)
async def not_found(error):
    """Handle 404 errors."""
    return jsonify({"error": "Not found"}), 404


@app.errorhandler(500)
async def internal_error(error):
    """Handle 500 errors."""
    logger.error("internal_server_error", error=str(error))
    return jsonify({"error": "Internal server error"}), 500


if __name__ == "__main__":
    # For development - use hypercorn in production
    app.run(host="0.0.0.0", port=5000, debug=True)
