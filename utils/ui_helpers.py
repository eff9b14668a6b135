import base64
import binascii
import logging
from io import BytesIO

import streamlit as st
from PIL import Image, UnidentifiedImageError

LOGO_MAX_WIDTH = 400


@st.cache_resource
def load_logo(data_url, max_width):
    """base64 data URL -> PIL image resized to max_width (None when unreadable)."""
    try:
        _, _, encoded = data_url.partition(",")
        img = Image.open(BytesIO(base64.b64decode(encoded)))
        w, h = img.size
        if w > max_width:
            img = img.resize((max_width, int(max_width * h / w)))
        return img
    except (binascii.Error, UnidentifiedImageError, OSError, ValueError) as e:
        if "logo_warned" not in st.session_state:
            logging.warning(f"Failed to load school logo: {e}")
            st.session_state["logo_warned"] = True
        return None


def add_logo(logo_data_url, width=120):  # Width only, height follows aspect ratio
    if not logo_data_url or not logo_data_url.startswith("data:image"):
        return None
    return load_logo(logo_data_url, width)


def logo_to_data_url(raw: bytes, max_width: int = LOGO_MAX_WIDTH) -> str:
    """
    Uploaded logo bytes -> PNG data URL, downscaled to max_width.

    Raises:
        ValueError: the bytes are not an image Pillow can read.
    """
    try:
        img = Image.open(BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError("The logo must be a PNG, JPEG or GIF image.") from e

    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA")
    w, h = img.size
    if w > max_width:
        img = img.resize((max_width, int(max_width * h / w)))

    stream = BytesIO()
    img.save(stream, format="PNG", optimize=True)
    return "data:image/png;base64," + base64.b64encode(stream.getvalue()).decode("ascii")


def download_payload(payload, filename, mime, label="Download", key=None):
    st.download_button(
        label=label,
        data=payload,
        file_name=filename,
        mime=mime,
        key=key,
    )


def show_unexpected_error(message, exc):
    """Generic error box; traceback only when environment = 'dev'."""
    logging.exception(message)
    st.error(message)
    if str(st.secrets.get("environment", "")).lower() == "dev":
        st.exception(exc)


def select_class(cycles, key_prefix, enabled_only=False):
    """
    Cycle + class select boxes. Returns (cycle, school_class); either may be
    None when nothing is available.
    """
    if enabled_only:
        cycles = [c for c in cycles if c.enabled]
    if not cycles:
        st.info("No cycle available.")
        return None, None

    by_id = {c.id: c for c in cycles}
    cycle_id = st.selectbox(
        "Cycle",
        list(by_id),
        format_func=lambda cid: by_id[cid].name,
        key=f"{key_prefix}_cycle",
    )
    cycle = by_id[cycle_id]
    classes = [c for c in cycle.classes if c.enabled] if enabled_only else list(cycle.classes)
    if not classes:
        st.info("No class available in this cycle.")
        return cycle, None

    classes_by_id = {c.id: c for c in classes}
    class_id = st.selectbox(
        "Class",
        list(classes_by_id),
        format_func=lambda cid: classes_by_id[cid].name,
        key=f"{key_prefix}_class_{cycle.id}",
    )
    return cycle, classes_by_id[class_id]


FLASH_KEY = "flash_messages"


def flash(message, level="success"):
    """Queue a message for the next run (st.rerun() clears anything drawn now)."""
    st.session_state.setdefault(FLASH_KEY, []).append((level, message))


def show_flashes():
    for level, message in st.session_state.pop(FLASH_KEY, []):
        getattr(st, level, st.info)(message)
