"""Unit tests for avatar resolution and loading."""
import asyncio
import io
import httpx
import numpy as np
from matplotlib import image as mpimg
from podcast_animator.render.avatars import load_session_avatars, placeholder_ref
from podcast_animator.render.models import AvatarStatus, SpeakerSlot
from podcast_animator.render.session import RenderSession
from podcast_animator.services.avatar_resolver import AvatarResolver, clean_handle, original_size_url


def png_bytes() -> bytes:
    out = io.BytesIO()
    mpimg.imsave(out, np.zeros((8, 8, 3), dtype=np.uint8), format="png")
    return out.getvalue()


def resolve_with(handler, token="token", handles=("@alice", "bob")):
    async def scenario():
        resolver = AvatarResolver(bearer_token=token, api_url="https://api.example.com/users/")
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await resolver.resolve_all(list(handles), client)
    return asyncio.run(scenario())


def test_clean_handle():
    """Test handle cleanup."""
    assert clean_handle("  @alice ") == "alice"
    assert clean_handle("bob") == "bob"


def test_original_size_url():
    """Test that the _normal size suffix is dropped."""
    assert original_size_url("https://pbs.example.com/a_normal.jpg") == "https://pbs.example.com/a.jpg"
    assert original_size_url("https://pbs.example.com/a.jpg") == "https://pbs.example.com/a.jpg"


def test_missing_token_uses_placeholders():
    """Test that no lookup happens without a bearer token."""
    def handler(request):
        raise AssertionError("should not be called")
    
    refs = resolve_with(handler, token="")
    
    assert refs == [placeholder_ref("alice"), placeholder_ref("bob")]


def test_successful_lookup():
    """Test that the profile image URL is returned at original size."""
    def handler(request):
        assert request.headers["Authorization"] == "Bearer token"
        username = request.url.path.rsplit("/", 1)[-1]
        return httpx.Response(200, json={"data": {
            "id": "1",
            "username": username,
            "profile_image_url": f"https://pbs.example.com/{username}_normal.png",
        }})
    
    refs = resolve_with(handler)
    
    assert refs == ["https://pbs.example.com/alice.png", "https://pbs.example.com/bob.png"]


def test_api_errors_fall_back():
    """Test HTTP errors, bad payloads and transport errors."""
    def handler(request):
        if request.url.path.endswith("alice"):
            return httpx.Response(404, json={"error": "not found"})
        return httpx.Response(200, json={"data": {}})
    
    assert resolve_with(handler) == [placeholder_ref("alice"), placeholder_ref("bob")]
    
    def offline(request):
        raise httpx.ConnectError("offline", request=request)
    
    assert resolve_with(offline) == [placeholder_ref("alice"), placeholder_ref("bob")]


def test_avatar_loading_marks_slots_independently():
    """Test that one failed slot does not affect the other."""
    image = png_bytes()
    
    def handler(request):
        if request.url.path == "/good.png":
            return httpx.Response(200, content=image)
        return httpx.Response(500)
    
    session = RenderSession((0,), 1.0, [
        SpeakerSlot(0, "alice", "https://img.example.com/good.png"),
        SpeakerSlot(1, "bob", "https://img.example.com/bad.png"),
    ])
    
    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await load_session_avatars(session, client)
    
    asyncio.run(scenario())
    
    assert session.avatars[0].status == AvatarStatus.LOADED
    assert session.avatars[0].image.shape[:2] == (8, 8)
    assert session.avatars[1].status == AvatarStatus.FAILED


def test_placeholder_refs_are_not_fetched():
    """Test that placeholder references resolve to FAILED without a request."""
    def handler(request):
        raise AssertionError("should not be called")
    
    session = RenderSession((0,), 1.0, [
        SpeakerSlot(0, "alice", placeholder_ref("alice")),
        SpeakerSlot(1, "bob", None),
    ])
    
    async def scenario():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            await load_session_avatars(session, client)
    
    asyncio.run(scenario())
    
    assert [a.status for a in session.avatars] == [AvatarStatus.FAILED, AvatarStatus.FAILED]
