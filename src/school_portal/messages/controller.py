from __future__ import annotations

from functools import wraps

from flask import Flask, jsonify, request, session

from ..container import Container
from ..common.session import current_context
from ..core.context import UserContext
from ..core.enums import Folder, Role
from ..core.exceptions import ValidationError
from .engine import MessagingEngine
from .model import draft_to_dict, message_to_dict


def view_json(engine: MessagingEngine, ctx: UserContext) -> dict:
    state = engine.snapshot()
    return {
        "folder": state.folder.value,
        "mode": state.mode.value,
        "loading": state.loading,
        "messages": engine.rows(ctx),
        "selected": message_to_dict(state.selected) if state.selected else None,
        "draft": draft_to_dict(state.draft),
        "reply_draft": state.reply_draft,
        "last_error": (
            {"kind": state.last_error.kind.value, "message": state.last_error.message}
            if state.last_error
            else None
        ),
        "recipients": [{"id": r.id, "name": r.name, "role": r.role.value} for r in ctx.recipients],
    }


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        async def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"error": "يرجى تسجيل الدخول"}), 401
            return await view(*args, **kwargs)

        return wrapper

    def _engine():
        ctx = current_context()
        return container.engine_for(ctx), ctx

    @app.route("/messages", methods=["GET"], endpoint="messages_list")
    @login_required
    async def messages_list():
        engine, ctx = _engine()
        folder = request.args.get("folder")
        try:
            target = Folder(folder) if folder else engine.folder
        except ValueError:
            return jsonify({"error": "مجلد غير معروف"}), 400
        await engine.list_messages(ctx, target)
        return jsonify(view_json(engine, ctx))

    @app.route("/messages/compose", methods=["POST"], endpoint="messages_compose")
    @login_required
    async def messages_compose():
        engine, ctx = _engine()
        engine.start_compose()
        return jsonify(view_json(engine, ctx))

    @app.route("/messages/compose/cancel", methods=["POST"], endpoint="messages_compose_cancel")
    @login_required
    async def messages_compose_cancel():
        engine, ctx = _engine()
        engine.cancel_compose()
        return jsonify(view_json(engine, ctx))

    @app.route("/messages/send", methods=["POST"], endpoint="messages_send")
    @login_required
    async def messages_send():
        engine, ctx = _engine()
        data = request.get_json(silent=True) or {}
        role = data.get("recipient_role")
        try:
            engine.update_draft(
                subject=str(data.get("subject") or ""),
                content=str(data.get("content") or ""),
                recipient_id=str(data.get("recipient_id") or ""),
                recipient_role=Role(role) if role else None,
            )
            await engine.compose(ctx)
        except ValueError:
            return jsonify({"error": "دور غير معروف"}), 400
        except ValidationError as e:
            return jsonify({**view_json(engine, ctx), "error": str(e)}), 400
        return jsonify(view_json(engine, ctx))

    @app.route("/messages/<message_id>/select", methods=["POST"], endpoint="messages_select")
    @login_required
    async def messages_select(message_id: str):
        engine, ctx = _engine()
        message = engine.find(message_id)
        if message is None:
            return jsonify({"error": "الرسالة غير موجودة"}), 404
        await engine.select_message(ctx, message)
        # Read receipts are fire-and-forget; finish them before this request's loop closes.
        await engine.settle()
        return jsonify(view_json(engine, ctx))

    @app.route("/messages/close", methods=["POST"], endpoint="messages_close")
    @login_required
    async def messages_close():
        engine, ctx = _engine()
        engine.close_thread()
        return jsonify(view_json(engine, ctx))

    @app.route("/messages/<message_id>/reply", methods=["POST"], endpoint="messages_reply")
    @login_required
    async def messages_reply(message_id: str):
        engine, ctx = _engine()
        parent = engine.find(message_id)
        if parent is None:
            return jsonify({"error": "الرسالة غير موجودة"}), 404
        data = request.get_json(silent=True) or {}
        await engine.reply(ctx, parent, str(data.get("content") or ""))
        return jsonify(view_json(engine, ctx))

    @app.route("/messages/<message_id>/delete", methods=["POST"], endpoint="messages_delete")
    @login_required
    async def messages_delete(message_id: str):
        engine, ctx = _engine()
        if engine.find(message_id) is None:
            return jsonify({"error": "الرسالة غير موجودة"}), 404
        data = request.get_json(silent=True) or {}
        await engine.delete_message(ctx, message_id, confirmed=bool(data.get("confirmed")))
        return jsonify(view_json(engine, ctx))
