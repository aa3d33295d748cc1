"""Interactive room shell: prints the conversation and reads chat lines."""

from __future__ import annotations

from typing import List, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from .connector import ConnectionState
from .errors import CredentialError, RoomChatError
from .log_manager import CATEGORIES
from .render import format_message, format_participant
from .session import ChatSession
from .store import ConversationState, Message


class ShellCompleter(Completer):
    """Slash command completer for the room shell."""

    def __init__(self):
        self.commands = {
            "/who": "List participants",
            "/facilitator": "Toggle the AI facilitator",
            "/ai": "Manage AI participants (/ai add NAME, /ai remove NAME)",
            "/log": "Show client log (/log events|errors|debug|traffic)",
            "/help": "Show this help",
            "/quit": "Leave the room",
        }

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor.lower()

        if not text.startswith("/"):
            return

        for cmd, desc in self.commands.items():
            if cmd.lower().startswith(text):
                yield Completion(
                    cmd[len(text):],
                    start_position=0,
                    display=f"{cmd} - {desc}",
                )


class MessagePrinter:
    """Prints log entries the first time they appear in a committed state."""

    def __init__(self, echo=print):
        self._echo = echo
        self._seen: List[Message] = []

    def __call__(self, state: ConversationState) -> None:
        seen_ids = {id(m) for m in self._seen}
        for message in state.log:
            if id(message) not in seen_ids:
                self._echo(format_message(message, state))
        # Keep references so ids stay unique while entries are tracked.
        self._seen = list(state.log)


class RoomShell:
    """Room shell built on a ``ChatSession``."""

    def __init__(self, session: ChatSession, room_id: str, name: str = ""):
        self.session = session
        self.room_id = room_id
        self.name = name
        self.history = InMemoryHistory()
        self.completer = ShellCompleter()
        self.running = False
        self.prompt: Optional[PromptSession] = None
        self._unsubscribe = session.store.subscribe(MessagePrinter())
        session.connector.on_status = self.print_status

    def print_status(self, state: ConnectionState, error: Optional[str]) -> None:
        if error:
            print(f"❌ {error}")
        elif state is ConnectionState.OPEN:
            print(f"✅ Connected to room {self.room_id}")
        if self.running and state in (ConnectionState.CLOSED, ConnectionState.FAULTED):
            self.stop_prompt()

    def stop_prompt(self) -> None:
        """End a pending prompt so the loop notices the stream is gone."""
        app = self.prompt.app if self.prompt is not None else None
        if app is not None and app.is_running:
            app.exit(exception=EOFError())

    async def handle_command(self, text: str) -> Optional[str]:
        """Handle one input line. Returns "quit" to leave."""
        if not text.startswith("/"):
            try:
                await self.session.send(text)
            except RoomChatError as e:
                print(f"❌ {e}")
            return None

        parts = text.split()
        cmd, args = parts[0].lower(), parts[1:]
        try:
            if cmd == "/quit":
                return "quit"
            elif cmd == "/help":
                for name, desc in self.completer.commands.items():
                    print(f"  {name:<14} {desc}")
            elif cmd == "/who":
                state = self.session.state
                if not state.roster:
                    print("  No participants.")
                for participant in state.roster:
                    print(f"  {format_participant(participant, state)}")
                if state.ai_participants:
                    print(f"  Active AI participants: {', '.join(state.ai_participants)}")
                print(f"  Facilitator: {'on' if state.facilitator_enabled else 'off'}")
            elif cmd == "/facilitator":
                enabled = await self.session.toggle_facilitator()
                print(f"👑 Facilitator {'enabled' if enabled else 'disabled'}")
            elif cmd == "/ai" and len(args) >= 2 and args[0] in ("add", "remove"):
                ai_name = " ".join(args[1:])
                if args[0] == "add":
                    added = await self.session.add_ai_participant(ai_name)
                    print(f"🤖 Added {added or ai_name}")
                else:
                    removed = await self.session.remove_ai_participant(ai_name)
                    print(f"🤖 Removed {removed or ai_name}")
            elif cmd == "/log":
                category = args[0] if args else "events"
                if category not in CATEGORIES:
                    print(f"  Unknown log category: {category}")
                else:
                    print(self.session.log_manager.text(category, last=50) or "  (empty)")
            else:
                print(f"  Unknown command: {text} (try /help)")
        except (RoomChatError, ValueError) as e:
            print(f"❌ {e}")
        return None

    async def run_async(self) -> None:
        """Connect, then read lines until /quit, EOF or the stream ends."""
        try:
            connected = await self.session.join(self.room_id, self.name)
        except CredentialError:
            return
        if not connected:
            if not self.session.error:
                print("❌ Could not connect")
            return

        self.prompt = prompt = PromptSession(
            history=self.history,
            completer=self.completer,
            complete_while_typing=False,
        )
        self.running = True

        with patch_stdout():
            while self.running and self.session.connector.is_open:
                try:
                    text = await prompt.prompt_async(HTML("<b>{}&gt;</b> ").format(self.room_id))
                except (EOFError, KeyboardInterrupt):
                    break
                text = text.strip()
                if text and await self.handle_command(text) == "quit":
                    break

        self.running = False
        await self.session.leave()
        self._unsubscribe()
        print("👋 Goodbye!")
