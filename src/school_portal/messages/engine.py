from __future__ import annotations

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Set, Tuple

from ..common.datetime_utils import MonotonicClock, arabic_date_label, from_millis
from ..common.validators import is_blank
from ..core.context import UserContext
from ..core.enums import ErrorKind, Folder, ViewMode
from ..core.exceptions import NotFoundError, ValidationError
from ..core.logger import get_logger
from .model import ComposeDraft, Message, Reply
from .repository import MessageStore
from .thread import MessageCache, build_message, build_reply, sort_newest_first

log = get_logger("messages.engine")

MISSING_FIELDS = "أكمل جميع الحقول"
UNKNOWN_RECIPIENT = "المستقبل غير معروف"
SEND_FAILED = "حدث خطأ في الإرسال"
GENERIC_FAILURE = "حدث خطأ"


@dataclass(frozen=True)
class ErrorNotice:
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class ViewState:
    """Everything the presentation layer needs to render the messages panel."""

    folder: Folder
    mode: ViewMode
    messages: Tuple[Message, ...]
    selected: Optional[Message]
    draft: Optional[ComposeDraft]
    reply_draft: str
    loading: bool
    last_error: Optional[ErrorNotice]


class MessagingEngine:
    """Session-long controller for one user's messages panel.

    Owns the cached folder list, the selection and the compose draft. The
    store owns durable state; the cache is reloaded in full after every send,
    reply and delete. Store failures never escape: they are logged and exposed
    as ``last_error``. Only validation failures are raised to the caller.
    """

    def __init__(self, store: MessageStore, *, clock: Optional[Callable[[], int]] = None):
        self._store = store
        self._clock = clock or MonotonicClock()
        self._folder = Folder.INBOX
        self._cache = MessageCache()
        self._selected_id: Optional[str] = None
        self._draft: Optional[ComposeDraft] = None
        self._reply_draft = ""
        self._in_flight = 0
        self._load_seq = 0
        self._last_error: Optional[ErrorNotice] = None
        self._pending: Set[asyncio.Task] = set()

    # State
    @property
    def folder(self) -> Folder:
        return self._folder

    @property
    def mode(self) -> ViewMode:
        if self._draft is not None:
            return ViewMode.COMPOSING
        if self._selected_id is not None:
            return ViewMode.THREAD_SELECTED
        return ViewMode.IDLE

    @property
    def messages(self) -> Tuple[Message, ...]:
        return self._cache.snapshot()

    @property
    def selected(self) -> Optional[Message]:
        return self._cache.get(self._selected_id)

    def find(self, message_id: Optional[str]) -> Optional[Message]:
        return self._cache.get(message_id)

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def last_error(self) -> Optional[ErrorNotice]:
        return self._last_error

    def snapshot(self) -> ViewState:
        return ViewState(
            folder=self._folder,
            mode=self.mode,
            messages=self.messages,
            selected=self.selected,
            draft=self._draft,
            reply_draft=self._reply_draft,
            loading=self.loading,
            last_error=self._last_error,
        )

    def rows(self, ctx: UserContext) -> List[dict]:
        """List rows as the panel shows them."""
        out = []
        for m in self._cache.snapshot():
            when = from_millis(m.timestamp)
            out.append(
                {
                    "id": m.id,
                    "title": m.sender_name if self._folder == Folder.INBOX else ctx.display_name_for(m.recipient_id),
                    "subject": m.subject,
                    "date": arabic_date_label(when.date()),
                    "unread": bool(m.unread_for(ctx.user_id, ctx.role)),
                    "selected": m.id == self._selected_id,
                    "reply_count": len(m.replies or ()),
                }
            )
        return out

    @contextmanager
    def _busy(self):
        self._in_flight += 1
        try:
            yield
        finally:
            self._in_flight -= 1

    def _record(self, kind: ErrorKind, message: str) -> None:
        self._last_error = ErrorNotice(kind=kind, message=message)

    # Folder listing
    async def list_messages(self, ctx: UserContext, folder: Optional[Folder] = None) -> List[Message]:
        folder = Folder(folder) if folder is not None else self._folder
        if folder != self._folder:
            return await self.switch_folder(ctx, folder)
        self._last_error = None
        return await self._load(ctx, folder)

    async def switch_folder(self, ctx: UserContext, folder: Folder) -> List[Message]:
        self._folder = Folder(folder)
        self._selected_id = None
        self._draft = None
        self._reply_draft = ""
        self._last_error = None
        self._cache.clear()
        return await self._load(ctx, self._folder)

    async def _load(self, ctx: UserContext, folder: Folder) -> List[Message]:
        self._load_seq += 1
        seq = self._load_seq

        with self._busy():
            try:
                if folder == Folder.INBOX:
                    result = await self._store.fetch_inbox(ctx.user_id, ctx.role)
                else:
                    result = await self._store.fetch_sent(ctx.user_id, ctx.role)
            except Exception:
                log.exception("loading %s for %s/%s failed", folder.value, ctx.role.value, ctx.user_id)
                if seq == self._load_seq and folder == self._folder:
                    self._cache.clear()
                    self._selected_id = None
                    self._record(ErrorKind.STORE_UNAVAILABLE, GENERIC_FAILURE)
                return []

        messages = sort_newest_first(result)
        if seq != self._load_seq or folder != self._folder:
            log.debug("discarding stale %s listing (request %d, latest %d)", folder.value, seq, self._load_seq)
            return messages

        self._cache.replace_all(messages)
        if self._selected_id not in self._cache:
            self._selected_id = None
        return list(self._cache.snapshot())

    # Compose
    def start_compose(self) -> ComposeDraft:
        self._selected_id = None
        self._reply_draft = ""
        if self._draft is None:
            self._draft = ComposeDraft()
        return self._draft

    def update_draft(self, **fields) -> ComposeDraft:
        draft = self.start_compose()
        self._draft = replace(draft, **fields)
        return self._draft

    def cancel_compose(self) -> None:
        self._draft = None

    def _validate_draft(self, ctx: UserContext, draft: ComposeDraft):
        if is_blank(draft.subject) or is_blank(draft.content) or is_blank(draft.recipient_id):
            raise ValidationError(MISSING_FIELDS)
        if draft.recipient_role is not None:
            return draft.recipient_role
        recipient = ctx.find_recipient(draft.recipient_id.strip())
        if recipient is None:
            raise ValidationError(UNKNOWN_RECIPIENT)
        return recipient.role

    async def compose(self, ctx: UserContext, draft: Optional[ComposeDraft] = None) -> Optional[Message]:
        """Send a new message. Raises ValidationError before touching the store."""
        draft = draft or self._draft or ComposeDraft()
        self._last_error = None
        try:
            recipient_role = self._validate_draft(ctx, draft)
        except ValidationError as exc:
            self._record(ErrorKind.VALIDATION, str(exc))
            raise

        message = build_message(ctx, draft, recipient_role=recipient_role, timestamp=self._clock())
        with self._busy():
            try:
                created = await self._store.create_message(message)
            except Exception:
                log.exception("sending message from %s to %s failed", ctx.user_id, message.recipient_id)
                self._record(ErrorKind.STORE_UNAVAILABLE, SEND_FAILED)
                return None

        log.info("message %s sent by %s/%s", created.id, ctx.role.value, ctx.user_id)
        self._draft = None
        await self._load(ctx, self._folder)
        return created

    # Thread
    async def select_message(self, ctx: UserContext, message: Message) -> Optional[Message]:
        """Open a thread. Unread entries addressed to ``ctx`` are marked read in the background."""
        current = self._cache.get(message.id)
        if current is None:
            log.debug("ignoring selection of %r: not in the %s list", message.id, self._folder.value)
            return None

        self._draft = None
        self._reply_draft = ""
        self._selected_id = current.id
        if current.unread_for(ctx.user_id, ctx.role):
            self._schedule(self.mark_thread_read(ctx, current))
        return current

    def close_thread(self) -> None:
        self._selected_id = None
        self._reply_draft = ""

    def set_reply_draft(self, content: str) -> None:
        self._reply_draft = content or ""

    async def mark_as_read(self, message: Message) -> bool:
        """Flip the read flag locally, then tell the store.

        The local flip is not rolled back if the store call fails; the next
        listing reconciles it.
        """
        if not message.id:
            return False
        current = self._cache.get(message.id) or message
        if current.read:
            return False

        self._cache.mark_read(message.id)
        try:
            await self._store.mark_read(message.id)
        except Exception:
            log.exception("marking message %s as read failed", message.id)
            self._record(ErrorKind.STORE_UNAVAILABLE, GENERIC_FAILURE)
        return True

    async def mark_thread_read(self, ctx: UserContext, message: Message) -> int:
        """Mark read every entry of the thread addressed to ``ctx``. Returns how many flipped."""
        if not message.id:
            return 0
        current = self._cache.get(message.id) or message
        flipped = 0
        for entry in current.unread_for(ctx.user_id, ctx.role):
            if not isinstance(entry, Reply):
                flipped += await self.mark_as_read(current)
                continue
            if not entry.id:
                continue
            self._cache.mark_reply_read(current.id, entry.id)
            flipped += 1
            try:
                await self._store.mark_reply_read(current.id, entry.id)
            except Exception:
                log.exception("marking reply %s of %s as read failed", entry.id, current.id)
                self._record(ErrorKind.STORE_UNAVAILABLE, GENERIC_FAILURE)
        return flipped

    async def reply(
        self,
        ctx: UserContext,
        parent: Optional[Message] = None,
        content: Optional[str] = None,
    ) -> Optional[Reply]:
        parent = parent or self.selected
        content = self._reply_draft if content is None else content
        if parent is None or not parent.id or is_blank(content):
            log.debug("reply skipped: no persisted parent or empty content")
            return None

        self._last_error = None
        reply = build_reply(ctx, parent, content, timestamp=self._clock())
        with self._busy():
            try:
                await self._store.append_reply(parent.id, reply)
            except NotFoundError:
                log.warning("reply target %s no longer exists", parent.id)
                self._record(ErrorKind.NOT_FOUND, GENERIC_FAILURE)
                await self._load(ctx, self._folder)
                return None
            except Exception:
                log.exception("reply to %s failed", parent.id)
                self._record(ErrorKind.STORE_UNAVAILABLE, GENERIC_FAILURE)
                return None

        self._reply_draft = ""
        self._selected_id = None
        await self._load(ctx, self._folder)
        return reply

    async def delete_message(self, ctx: UserContext, message_id: Optional[str], *, confirmed: bool) -> bool:
        if not message_id or not confirmed:
            return False

        self._last_error = None
        with self._busy():
            try:
                await self._store.delete_message(message_id)
            except NotFoundError:
                log.warning("message %s was already deleted", message_id)
                self._record(ErrorKind.NOT_FOUND, GENERIC_FAILURE)
                await self._load(ctx, self._folder)
                return False
            except Exception:
                log.exception("deleting message %s failed", message_id)
                self._record(ErrorKind.STORE_UNAVAILABLE, GENERIC_FAILURE)
                return False

        if self._selected_id == message_id:
            self._selected_id = None
        log.info("message %s deleted by %s/%s", message_id, ctx.role.value, ctx.user_id)
        await self._load(ctx, self._folder)
        return True

    # Background work
    def _schedule(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def settle(self) -> None:
        """Wait for fire-and-forget work such as read receipts."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
