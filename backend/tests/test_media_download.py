"""Unit tests for remote media download."""
import pytest
import yt_dlp
from podcast_animator.services import media_download
from podcast_animator.services.media_download import download_audio, validate_media_url
from podcast_animator.core.errors import DecodeFailure, InvalidInput


class RecordingYoutubeDL:
    """Downloader double that records options and writes `payload` unless skipping."""
    instances = []
    payload = b"RIFF....WAVEfmt "
    skip_write = False
    
    def __init__(self, options):
        self.options = options
        RecordingYoutubeDL.instances.append(self)
    
    def __enter__(self):
        return self
    
    def __exit__(self, *exc_info):
        return False
    
    def extract_info(self, url, download=True):
        info = {"id": "abc123", "ext": "m4a"}
        if not self.skip_write:
            with open(self.prepare_filename(info), "wb") as f:
                f.write(self.payload)
        return info
    
    def prepare_filename(self, info):
        return self.options["outtmpl"] % {"ext": info["ext"]}


@pytest.fixture
def downloader(monkeypatch):
    monkeypatch.setattr(RecordingYoutubeDL, "instances", [])
    monkeypatch.setattr(RecordingYoutubeDL, "skip_write", False)
    monkeypatch.setattr(media_download.yt_dlp, "YoutubeDL", RecordingYoutubeDL)
    return RecordingYoutubeDL


def test_validate_media_url():
    """Test that only http(s) URLs pass."""
    assert validate_media_url("  https://youtu.be/abc ") == "https://youtu.be/abc"
    for url in ("", "ftp://example.com/a.mp3", "youtube.com/watch?v=abc"):
        with pytest.raises(InvalidInput):
            validate_media_url(url)


def test_download_returns_bytes_and_container_name(downloader):
    """Test that the downloaded file is read back with its extension."""
    data, filename = download_audio("https://www.youtube.com/watch?v=abc123")
    
    assert data == downloader.payload
    assert filename == "media.m4a"
    options = downloader.instances[0].options
    assert options["format"] == "bestaudio/best"
    assert options["noplaylist"] is True


def test_download_error_is_decode_failure(monkeypatch, downloader):
    """Test that yt-dlp errors surface as DecodeFailure."""
    def fail(self, url, download=True):
        raise yt_dlp.utils.DownloadError("ERROR: Private video")
    
    monkeypatch.setattr(downloader, "extract_info", fail)
    
    with pytest.raises(DecodeFailure, match="Private video"):
        download_audio("https://www.youtube.com/watch?v=private")


def test_skipped_download_is_decode_failure(downloader):
    """Test that a file skipped for size is reported, not read."""
    downloader.skip_write = True
    
    with pytest.raises(DecodeFailure):
        download_audio("https://www.youtube.com/watch?v=huge")
