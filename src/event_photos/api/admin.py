"""Admin gallery endpoints behind the shared password."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import HTMLResponse

from event_photos.api.deps import get_container
from event_photos.api.schemas import AdminLogin, GalleryView
from event_photos.domain.errors import GalleryError
from event_photos.services.admin import INCORRECT_PASSWORD_MESSAGE
from event_photos.services.gallery import NAVIGATION_KEYS

if TYPE_CHECKING:
    from event_photos.services.gallery import GalleryViewModel

router = APIRouter(prefix="/admin", tags=["admin"])


async def require_admin(
    request: Request, x_admin_password: str | None = Header(default=None)
) -> None:
    """Ensure requests carry the admin password."""
    if not get_container(request).admin_gate.verify(x_admin_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INCORRECT_PASSWORD_MESSAGE,
        )


def _gallery(request: Request) -> GalleryViewModel:
    return get_container(request).admin_gallery


@router.post("/login")
async def login(body: AdminLogin, request: Request) -> dict[str, str]:
    """Check the admin password."""
    if not get_container(request).admin_gate.verify(body.password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INCORRECT_PASSWORD_MESSAGE,
        )
    return {"status": "ok"}


@router.get("/gallery", dependencies=[Depends(require_admin)])
async def gallery_state(request: Request) -> GalleryView:
    """Return the admin gallery state."""
    return GalleryView.from_gallery(_gallery(request))


@router.post("/gallery/refresh", dependencies=[Depends(require_admin)])
async def refresh_gallery(request: Request) -> GalleryView:
    """Reload photos from the backend."""
    gallery = _gallery(request)
    try:
        gallery.refresh()
    except GalleryError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return GalleryView.from_gallery(gallery)


@router.post("/gallery/focus/{index}", dependencies=[Depends(require_admin)])
async def focus_photo(index: int, request: Request) -> GalleryView:
    """Show one photo full screen."""
    gallery = _gallery(request)
    try:
        gallery.open(index)
    except IndexError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found"
        ) from exc
    return GalleryView.from_gallery(gallery)


@router.post("/gallery/keys/{key}", dependencies=[Depends(require_admin)])
async def press_key(key: str, request: Request) -> GalleryView:
    """Apply ArrowLeft, ArrowRight or Escape to the focused photo."""
    if key not in NAVIGATION_KEYS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unsupported key {key}"
        )
    gallery = _gallery(request)
    gallery.handle_key(key)
    return GalleryView.from_gallery(gallery)


@router.post(
    "/gallery/photos/{photo_id}/delete", dependencies=[Depends(require_admin)]
)
async def delete_photo(photo_id: str, request: Request) -> dict[str, object]:
    """Arm a deletion, or delete when the same photo is already armed."""
    gallery = _gallery(request)
    try:
        outcome = gallery.request_delete(photo_id)
    except GalleryError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)
        ) from exc
    return {
        "outcome": str(outcome),
        "gallery": GalleryView.from_gallery(gallery).model_dump(),
    }


@router.post("/gallery/confirmation/cancel", dependencies=[Depends(require_admin)])
async def cancel_delete(request: Request) -> GalleryView:
    """Drop a pending delete confirmation."""
    gallery = _gallery(request)
    gallery.cancel_delete()
    return GalleryView.from_gallery(gallery)


@router.get("/ui", response_class=HTMLResponse)
async def admin_ui() -> HTMLResponse:
    """Minimal admin console that consumes the admin API."""
    return HTMLResponse(_ADMIN_UI_HTML)


_ADMIN_UI_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Event Photos Admin</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; }
      .row { margin-bottom: 1rem; }
      input { padding: 0.4rem 0.6rem; width: 320px; }
      button { padding: 0.4rem 0.8rem; margin-right: 0.5rem; }
      pre { background: #f6f6f6; padding: 1rem; overflow: auto; }
    </style>
  </head>
  <body>
    <h1>Event Photos Admin</h1>
    <div class="row">
      <label>Admin password</label><br />
      <input id="password" type="password" placeholder="X-Admin-Password" />
    </div>
    <div class="row">
      <button onclick="call('/admin/gallery/refresh')">Refresh</button>
      <button onclick="call('/admin/gallery/keys/ArrowLeft')">Previous</button>
      <button onclick="call('/admin/gallery/keys/ArrowRight')">Next</button>
      <button onclick="call('/admin/gallery/keys/Escape')">Close</button>
    </div>
    <div class="row">
      <input id="photo" placeholder="Photo id" />
      <button onclick="removePhoto()">Delete (click twice)</button>
    </div>
    <pre id="output">Ready.</pre>
    <script>
      async function call(path) {
        const password = document.getElementById('password').value;
        const output = document.getElementById('output');
        output.textContent = 'Loading...';
        const res = await fetch(path, {
          method: 'POST',
          headers: { 'X-Admin-Password': password }
        });
        const data = await res.json();
        output.textContent = res.ok
          ? JSON.stringify(data, null, 2)
          : 'Error: ' + (data.detail || res.status);
      }
      function removePhoto() {
        const id = document.getElementById('photo').value;
        call('/admin/gallery/photos/' + encodeURIComponent(id) + '/delete');
      }
    </script>
  </body>
</html>
"""
