"""FastAPI server exposing the wardrobe core to a UI layer."""

from typing import List

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from memory.wardrobe_store import WriteResult
from models.feed import CalendarEvent
from models.identity import Identity, Profile
from wardrobe_app.app import WardrobeApp
from wardrobe_app.errors import (
    DuplicateEntityError,
    NotConfiguredError,
    OperationCancelledError,
    RemoteServiceError,
)


class SignInRequest(BaseModel):
    """Identity handed over by the external auth provider."""

    id: str = Field(..., min_length=1, description="Stable opaque identity id")
    display_name: str = ""
    email: str | None = None
    photo_ref: str | None = None


class ProfileRequest(BaseModel):
    name: str
    height_cm: float = Field(..., gt=0)
    weight_kg: float = Field(..., gt=0)
    skin_tone: str
    skin_tone_hex: str
    gender: str = "Other"
    style_preference: str | None = None
    body_photo: str | None = None


class UploadRequest(BaseModel):
    image: str = Field(..., description="Data URL, bare base64 or http(s) reference")


class SuggestionRequest(BaseModel):
    occasion: str = Field(..., min_length=1)


class OutfitRequest(BaseModel):
    item_ids: List[str] = Field(..., min_length=1)
    ai_feedback: str | None = None
    notes: str | None = None
    with_turnaround: bool = False


class EventRequest(BaseModel):
    date: str
    title: str
    outfit_id: str


class CommentRequest(BaseModel):
    comment: str = Field(..., min_length=1)


def _write_payload(result: WriteResult) -> dict:
    return {
        "applied": result.applied,
        "persisted": result.persisted,
        "warning": result.warning.message if result.warning else None,
        "discarded_reason": result.discarded_reason,
    }


def create_app(wardrobe: WardrobeApp | None = None) -> FastAPI:
    """Build the API around ``wardrobe`` (or a default app configured from env)."""

    wardrobe = wardrobe or WardrobeApp()
    api = FastAPI(title="Wardrobe Core", version="0.1.0")
    api.state.wardrobe = wardrobe

    @api.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness probe."""

        return {
            "status": "ok",
            "service": "wardrobe-core",
            "environment": wardrobe.config.environment or "local",
            "ai_configured": wardrobe.is_ai_configured(),
            "scope": wardrobe.store.scope_key,
        }

    @api.post("/session")
    async def sign_in(request: SignInRequest) -> dict:
        try:
            identity = Identity(**request.model_dump())
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        wardrobe.sign_in(identity)
        return {"scope": wardrobe.store.scope_key}

    @api.delete("/session")
    async def sign_out() -> dict:
        wardrobe.sign_out()
        return {"scope": wardrobe.store.scope_key}

    @api.get("/wardrobe")
    async def snapshot() -> dict:
        """Everything the active scope can see."""

        store = wardrobe.store
        return {
            "scope": store.scope_key,
            "profile": store.profile.to_dict() if store.profile else None,
            "clothes": [item.to_dict() for item in store.clothes],
            "outfits": [outfit.to_dict() for outfit in store.outfits],
            "calendar": [event.to_dict() for event in store.calendar],
            "social": [look.to_dict() for look in store.shared_looks],
        }

    @api.put("/profile")
    async def set_profile(request: ProfileRequest) -> dict:
        try:
            profile = Profile(**request.model_dump())
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _write_payload(wardrobe.store.set_profile(profile))

    @api.post("/clothes")
    async def upload_item(request: UploadRequest) -> dict:
        """Classify an upload (or fall back to manual entry) and catalogue it."""

        try:
            item, result = await wardrobe.add_classified_item(request.image)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"item": item.to_dict(), **_write_payload(result)}

    @api.delete("/clothes/{item_id}")
    async def remove_item(item_id: str) -> dict:
        result = wardrobe.store.remove_item(item_id)
        if not result.applied:
            raise HTTPException(status_code=404, detail=f"Unknown clothing item {item_id}")
        return _write_payload(result)

    @api.post("/suggestions")
    async def suggest(request: SuggestionRequest) -> dict:
        try:
            suggestion = await wardrobe.suggest_look(request.occasion)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {
            "suggestion": suggestion.suggestion,
            "recommended_item_ids": suggestion.recommended_item_ids,
            "ai_generated": suggestion.ai_generated,
        }

    @api.post("/outfits")
    async def save_outfit(request: OutfitRequest) -> dict:
        """Save a look, optionally rendering the four-view turnaround first."""

        try:
            if request.with_turnaround:
                outfit, result = await wardrobe.create_look_with_turnaround(
                    request.item_ids, ai_feedback=request.ai_feedback
                )
            else:
                outfit, result = wardrobe.save_look(
                    request.item_ids, ai_feedback=request.ai_feedback, notes=request.notes
                )
        except NotConfiguredError as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except OperationCancelledError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except RemoteServiceError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return {"outfit": outfit.to_dict(), **_write_payload(result)}

    @api.delete("/outfits/{outfit_id}")
    async def delete_outfit(outfit_id: str) -> dict:
        result = wardrobe.store.delete_outfit(outfit_id)
        if not result.applied:
            raise HTTPException(status_code=404, detail=f"Unknown outfit {outfit_id}")
        return _write_payload(result)

    @api.post("/calendar")
    async def add_event(request: EventRequest) -> dict:
        try:
            event = CalendarEvent(**request.model_dump())
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        return _write_payload(wardrobe.store.add_event(event))

    @api.post("/social/outfits/{outfit_id}")
    async def share_outfit(outfit_id: str) -> dict:
        try:
            look, result = wardrobe.store.share_outfit(outfit_id)
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown outfit {outfit_id}") from exc
        except DuplicateEntityError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return {"look": look.to_dict(), **_write_payload(result)}

    @api.post("/social/looks/{look_id}/likes")
    async def like_look(look_id: str) -> dict:
        try:
            return _write_payload(wardrobe.store.like_look(look_id))
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown look {look_id}") from exc

    @api.post("/social/looks/{look_id}/comments")
    async def comment_on_look(look_id: str, request: CommentRequest) -> dict:
        try:
            return _write_payload(wardrobe.store.comment_on_look(look_id, request.comment))
        except KeyError as exc:
            raise HTTPException(status_code=404, detail=f"Unknown look {look_id}") from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    return api


def get_app() -> FastAPI:
    """ASGI factory wired from environment configuration."""

    return create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:get_app", factory=True, host="0.0.0.0", port=8080, reload=False)
