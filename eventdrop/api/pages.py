"""
HTML pages for guests and the admin console.

Pages are small and static enough that plain string templates do the job.
Every interpolated value goes through escape().
"""

from html import escape
from typing import Optional
from urllib.parse import quote

from ..core.events.models import Event
from ..core.uploads.links import UploadLink

_BASE_STYLE = """
    body {
      margin: 0;
      min-height: 100vh;
      font-family: 'Tajawal', 'Cairo', Arial, sans-serif;
      display: flex;
      flex-direction: column;
      justify-content: center;
      align-items: center;
    }
    .form-box {
      background: rgba(0,0,0,0.75);
      color: #fff;
      padding: 32px 18px 24px 18px;
      margin: 24px auto;
      border-radius: 18px;
      max-width: 390px;
      width: 95vw;
      box-shadow: 0 4px 16px #0004;
    }
    input, button { width: 100%; margin-bottom: 12px; box-sizing: border-box; }
    button {
      padding: 13px;
      border-radius: 8px;
      border: none;
      font-size: 1.15em;
      background: #fa3b77;
      color: #fff;
      font-weight: bold;
      cursor: pointer;
    }
    button:hover { background: #c80046; }
    a { color: #ffd2e6; }
    @media (max-width: 500px) {
      .form-box { padding: 16px 5vw 14px 5vw; max-width: 98vw; }
    }
"""


_CSS_URL_UNSAFE = {"'": "%27", '"': "%22", "\\": "%5C", "\n": "%0A", "\r": "%0D"}


def _css_url(url: str) -> str:
    """A url(...) value; the caller still escapes it for the surrounding attribute."""
    return "url('" + "".join(_CSS_URL_UNSAFE.get(ch, ch) for ch in url) + "')"


def _page(title: str, body: str, extra_style: str = "", body_style: str = "") -> str:
    body_attrs = f' style="{escape(body_style)}"' if body_style else ""
    return f"""<!DOCTYPE html>
<html>
<head>
  <title>{escape(title)}</title>
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <link href="https://fonts.googleapis.com/css?family=Cairo:700|Tajawal:400,700&display=swap" rel="stylesheet">
  <style>{_BASE_STYLE}{extra_style}</style>
</head>
<body{body_attrs}>
{body}
</body>
</html>
"""


def guest_upload_page(event: Event) -> str:
    """Branded upload form for one event."""
    # Inside <style> entities are not decoded, so the URL goes in an attribute.
    background = f"background-image: {_css_url(event.bg)};"
    style = """
    body {
      background-size: cover;
      background-position: center center;
      background-repeat: no-repeat;
    }
    .event-place { font-size: 1.1em; margin-bottom: 20px; color: #ffd2e6; }
"""
    body = f"""
  <div class="form-box">
    <h2>{escape(event.name)}</h2>
    <div class="event-place">{escape(event.date)} | {escape(event.place)}</div>
    <form action="/event/{escape(event.id)}/upload" method="POST" enctype="multipart/form-data">
      <input type="file" name="file" required accept="image/*,video/*" />
      <button type="submit">Upload</button>
    </form>
  </div>"""
    return _page(f"Upload for {event.name}", body, style, body_style=background)


def upload_done_page(event_id: str) -> str:
    body = f"""
  <div class="form-box">
    <h2>Thank you!</h2>
    <p>Your file was uploaded.</p>
    <a href="/event/{escape(event_id)}">Upload another</a>
  </div>"""
    return _page("Upload complete", body)


def admin_console_page() -> str:
    body = """
  <div class="form-box">
    <h2>Create event</h2>
    <form action="/admin/create" method="POST" enctype="multipart/form-data">
      <input type="text" name="eventName" placeholder="Event name" required />
      <input type="text" name="eventDate" placeholder="Date" required />
      <input type="text" name="eventPlace" placeholder="Place" required />
      <input type="file" name="bgPhoto" accept="image/*" required />
      <input type="password" name="password" placeholder="Admin password" required />
      <button type="submit">Create</button>
    </form>
  </div>
  <div class="form-box">
    <h2>All events</h2>
    <form action="/admin/events" method="POST">
      <input type="password" name="password" placeholder="Admin password" required />
      <button type="submit">Show events</button>
    </form>
  </div>"""
    return _page("Event admin", body)


def event_created_page(event: Event, link: str, qr_uri: str) -> str:
    body = f"""
  <div class="form-box">
    <h2>{escape(event.name)} created</h2>
    <p>Guest link: <a href="{escape(link)}">{escape(link)}</a></p>
    <img src="{qr_uri}" alt="QR code for {escape(event.name)}" style="background:#fff;width:100%;" />
  </div>"""
    return _page("Event created", body)


def event_list_page(entries: list[tuple[Event, str]], password: Optional[str]) -> str:
    """Admin list of events; entries pair each event with its guest link."""
    rows = []
    for event, link in entries:
        photos_href = f"/admin/photos/{quote(event.id)}"
        if password:
            photos_href += f"?password={quote(password)}"
        rows.append(
            f"<li><strong>{escape(event.name)}</strong> "
            f"({escape(event.date)}, {escape(event.place)})<br/>"
            f'<a href="{escape(link)}">{escape(link)}</a> | '
            f'<a href="{escape(photos_href)}">photos</a></li>'
        )

    listing = "\n".join(rows) if rows else "<li>No events yet.</li>"
    body = f"""
  <div class="form-box">
    <h2>Events</h2>
    <ul>
{listing}
    </ul>
  </div>"""
    return _page("Events", body)


def photo_list_page(event: Optional[Event], event_id: str, uploads: list[UploadLink]) -> str:
    title = event.name if event else event_id
    rows = [
        f'<li><a href="{escape(upload.signed_url)}" target="_blank">'
        f"{escape(upload.display_name)}</a> ({upload.size} bytes)</li>"
        for upload in uploads
    ]
    listing = "\n".join(rows) if rows else "<li>No uploads yet.</li>"
    body = f"""
  <div class="form-box">
    <h2>Uploads for {escape(title)}</h2>
    <ul>
{listing}
    </ul>
  </div>"""
    return _page(f"Uploads for {title}", body)
