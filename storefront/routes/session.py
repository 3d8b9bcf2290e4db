# storefront/routes/session.py
from fastapi import APIRouter, Depends, HTTPException, status

from storefront.errors import StorageWriteError
from storefront.schemas.session import SessionIn, SessionOut
from storefront.services.storefront import Storefront, get_storefront

router = APIRouter(prefix="/session", tags=["Session"])


def _session_out(sf: Storefront) -> SessionOut:
    return SessionOut(is_authenticated=sf.auth.is_authenticated, role=sf.auth.role)


# Current session as seen by this tab
@router.get("", response_model=SessionOut)
def get_session(sf: Storefront = Depends(get_storefront)):
    sf.store.sync()
    return _session_out(sf)


# Store the credential issued by the identity provider
@router.post("", response_model=SessionOut, status_code=status.HTTP_200_OK)
def login(payload: SessionIn, sf: Storefront = Depends(get_storefront)):
    try:
        sf.auth.login(payload.token, payload.role)
    except StorageWriteError as e:
        raise HTTPException(status_code=503, detail=e.message)
    return _session_out(sf)


@router.delete("", response_model=SessionOut)
def logout(sf: Storefront = Depends(get_storefront)):
    try:
        sf.auth.logout()
    except StorageWriteError as e:
        raise HTTPException(status_code=503, detail=e.message)
    return _session_out(sf)
