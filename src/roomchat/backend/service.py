"""Mock room backend - FastAPI server speaking the room stream protocol.

Run locally with:

    roomchat-backend --port 8000

The data lives in-memory; restarting the server resets everything. AI
participants do not generate text: each human chat line is answered by a
scripted thinking placeholder followed by an echo reply per active AI.
"""

import asyncio
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ValidationError

from .rooms import THINKING_SUFFIX, Member, Room, now_iso

POLICY_VIOLATION = 1008


# Pydantic models for API
class TokenRequest(BaseModel):
    username: Optional[str] = None


class ChatPayload(BaseModel):
    message: str


class RoomService:
    """In-memory room service for local development and tests."""

    def __init__(self, reply_delay: float = 0.0):
        self.app = FastAPI(
            title="roomchat mock backend",
            description="Token issuance, room stream and AI controls",
            version="0.1.0",
        )
        self.rooms: Dict[str, Room] = {}
        self.tokens: Dict[str, str] = {}  # token -> username
        self.reply_delay = reply_delay

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._register_routes()

    def get_room(self, room_id: str) -> Room:
        room = self.rooms.get(room_id)
        if room is None:
            room = Room(id=room_id)
            self.rooms[room_id] = room
        return room

    def _register_routes(self):
        """Register FastAPI routes."""

        @self.app.post("/api/token")
        async def issue_token(req: TokenRequest):
            """Issue a token; blank names get a generated one."""
            username = (req.username or "").strip() or f"User_{uuid4().hex[:4]}"
            token = uuid4().hex
            self.tokens[token] = username
            return {"token": token, "username": username}

        @self.app.post("/room/{room_id}/facilitator")
        async def toggle_facilitator(room_id: str, enable: bool):
            room = self.get_room(room_id)
            member = Member(token=token, name=username, websocket=websocket)
            history = list(room.chat_log)
            room.add_member(member)

            try:
                join = {
                    "type": "join",
                    "user_id": token,
                    "username": username,
                    "timestamp": now_iso(),
                    "users": room.roster(),
                    **room.common_state(),
                }
                await websocket.send_json({**join, "chat_log": history})
                await self._broadcast(room, join, exclude=token)

                while True:
                    data = await websocket.receive_text()
                    try:
                        payload = ChatPayload.model_validate_json(data)
                    except ValidationError:
                        await websocket.send_json(
                            {"type": "error", "message": "Invalid payload", "timestamp": now_iso()}
                        )
                        continue
                    await self._handle_chat(room, member, payload.message)

            except WebSocketDisconnect:
                pass
            finally:
                room.remove_member(token)
                await self._broadcast(room, {
                    "type": "leave",
                    "user_id": token,
                    "username": username,
                    "timestamp": now_iso(),
                    "users": room.roster(),
                    **room.common_state(),
                })

    async def _broadcast(self, room: Room, event: Dict[str, Any], exclude: Optional[str] = None):
        """Send an event to every connected member of a room."""
        for member in list(room.members.values()):
            if member.token == exclude or member.websocket is None:
                continue
            try:
                await member.websocket.send_json(event)
            except Exception:
                # Socket already closed; the disconnect handler cleans up.
                continue

    async def _broadcast_system(self, room: Room, text: str):
        await self._broadcast(room, {
            "type": "system_message",
            "message": text,
            "timestamp": now_iso(),
            **room.common_state(),
        })

    async def _handle_chat(self, room: Room, member: Member, text: str):
        chat = {
            "type": "chat",
            "user_id": member.token,
            "username": member.name,
            "message": text,
            "timestamp": now_iso(),
        }
        room.record(chat)
        await self._broadcast(room, chat)

        for ai_id, ai_name in room.responders():
            await self._broadcast(room, {
                "type": "system_message",
                "user_id": f"{ai_id}{THINKING_SUFFIX}",
                "username": ai_name,
                "message": f"{ai_name} is thinking...",
                "is_thinking": True,
                "timestamp": now_iso(),
            })
            if self.reply_delay:
                await asyncio.sleep(self.reply_delay)
            reply = {
                "type": "chat",
                "user_id": ai_id,
                "username": ai_name,
                "message": f"{ai_name} heard: {text}",
                "is_thinking": False,
                "timestamp": now_iso(),
            }
            room.record(reply)
            await self._broadcast(room, reply)


def create_app(reply_delay: float = 0.0) -> FastAPI:
    """Create and return the FastAPI app."""
    service = RoomService(reply_delay=reply_delay)
    return service.app
