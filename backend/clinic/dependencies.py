from fastapi import Depends, HTTPException, Request
from clinic.auth import UserPrincipal
from clinic.store import ClinicStore


def get_store(request: Request) -> ClinicStore:
    return request.app.state.store


def get_current_user(store: ClinicStore = Depends(get_store)) -> UserPrincipal:
    """
    FastAPI dependency. Resolves the store's active session to a principal;
    raises 401 when nobody is logged in.
    """
    principal = store.principal
    if principal is None:
        raise HTTPException(status_code=401, detail="Not logged in")
    return principal


def require_admin(current_user: UserPrincipal = Depends(get_current_user)) -> UserPrincipal:
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="This view is limited to clinic staff")
    return current_user
