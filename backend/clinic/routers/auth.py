from fastapi import APIRouter, Depends, HTTPException
from clinic.dependencies import get_store
from clinic.schemas.user import LoginRequest
from clinic.store import ClinicStore

router = APIRouter()


@router.post("/login")
async def login(body: LoginRequest, store: ClinicStore = Depends(get_store)):
    """Start a session. Wrong email and wrong password get the same answer."""
    if not store.login(body.email, body.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return {"user": store.current_user.to_record()}


@router.post("/logout")
async def logout(store: ClinicStore = Depends(get_store)):
    store.logout()
    return {"message": "Logged out"}


@router.get("/me")
async def me(store: ClinicStore = Depends(get_store)):
    if store.current_user is None:
        raise HTTPException(status_code=401, detail="Not logged in")
    return {"user": store.current_user.to_record()}
