"""
Wallet-connect modal markup.

The modal is presentation only: a header and a connection body (rendered by the
`wallet-modal-desktop-mode` element from the connection URI) inside an open shadow root,
so its styles don't leak into the host page. Any click inside the modal, including on the
header's close button, removes the modal wrapper from the document.
"""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import Final

WALLET_CONNECT_MODAL_ID: Final[str] = "wallet-connect-modal-wrapper"
WALLET_MODAL_CLASSNAME: Final[str] = "wallet-modal"
WALLET_CONNECT_MODAL_TAG: Final[str] = "wallet-connect-modal"
WALLET_MODAL_HEADER_TAG: Final[str] = "wallet-modal-header"
WALLET_MODAL_DESKTOP_MODE_TAG: Final[str] = "wallet-modal-desktop-mode"

DEFAULT_STYLES: Final[str] = """
.wallet-modal {
  position: fixed;
  inset: 0;
  display: flex;
  align-items: center;
  justify-content: center;
  background-color: rgba(0, 0, 0, 0.6);
  z-index: 10;
}
.wallet-modal__body {
  position: relative;
  width: 640px;
  max-width: 100%;
  padding: 32px;
  border-radius: 24px;
  background-color: #ffffff;
  box-shadow: 0 20px 60px rgba(26, 26, 26, 0.1);
}
.wallet-modal--desktop .wallet-modal__body {
  min-height: 480px;
}
""".strip()


def remove_modal_wrapper_script(modal_id: str) -> str:
    """Inline handler removing the element with `modal_id` from the document."""
    return f"document.getElementById('{_js_string(modal_id)}')?.remove()"


def _js_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


@dataclass(frozen=True, slots=True)
class WalletConnectModal:
    """Renders the wallet-connect modal for a connection `uri`."""

    uri: str
    modal_id: str = WALLET_CONNECT_MODAL_ID
    styles: str = DEFAULT_STYLES

    @property
    def class_names(self) -> str:
        return f"{WALLET_MODAL_CLASSNAME} {WALLET_MODAL_CLASSNAME}--desktop"

    def render_content(self) -> str:
        """Markup placed inside the modal's shadow root."""
        modal_id = escape(self.modal_id, quote=True)
        uri = escape(self.uri, quote=True)
        return (
            f'<div class="{self.class_names}">'
            f'<div class="{WALLET_MODAL_CLASSNAME}__body">'
            f'<{WALLET_MODAL_HEADER_TAG} modal-id="{modal_id}">'
            f"</{WALLET_MODAL_HEADER_TAG}>"
            f'<{WALLET_MODAL_DESKTOP_MODE_TAG} id="{WALLET_MODAL_DESKTOP_MODE_TAG}" '
            f'uri="{uri}">'
            f"</{WALLET_MODAL_DESKTOP_MODE_TAG}>"
            "</div>"
            "</div>"
        )

    def render(self) -> str:
        """
        Full modal markup: the removable wrapper, the custom element and its declarative
        shadow root holding the styles and content.

        Clicks inside a shadow root are retargeted to the host as they bubble, so the
        wrapper's handler sees every click in the modal.
        """
        modal_id = escape(self.modal_id, quote=True)
        on_click = escape(remove_modal_wrapper_script(self.modal_id), quote=True)
        return (
            f'<div id="{modal_id}" onclick="{on_click}">'
            f'<{WALLET_CONNECT_MODAL_TAG} uri="{escape(self.uri, quote=True)}">'
            '<template shadowrootmode="open">'
            f"<style>{self.styles}</style>"
            f"{self.render_content()}"
            "</template>"
            f"</{WALLET_CONNECT_MODAL_TAG}>"
            "</div>"
        )
