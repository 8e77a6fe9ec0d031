"""Admin session: store or drop the backend bearer token."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from soundcave_admin.api.state import AppState, get_state

router = APIRouter()


class TokenBody(BaseModel):
    token: str
    user: Optional[dict] = None


@router.get("")
def get_session(state: AppState = Depends(get_state)):
    """Return whether a token is stored and the user it belongs to."""
    token = state.credentials.get_token()
    return {
        "logged_in": token is not None,
        "user": state.credentials.get_user() if token else None,
    }


@router.put("/token")
def set_token(body: TokenBody, state: AppState = Depends(get_state)):
    """Store the token the login page obtained; used on every backend request."""
    token = body.token.strip()
    if not token:
        raise HTTPException(status_code=400, detail="Token must not be empty")
    state.credentials.set_token(token, body.user)
    return {"ok": True}


@router.delete("")
def logout(state: AppState = Depends(get_state)):
    """Clear the stored token and user."""
    state.credentials.clear()
    return {"ok": True}
