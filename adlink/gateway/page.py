"""
HTML rendering of the gateway interstitial.

The server owns the countdown; the inline script only mirrors it on screen
and, with auto-navigation enabled, submits the continue form at zero.
"""

from __future__ import annotations

from html import escape

from adlink.gateway.controller import GatewayController
from adlink.schemas.internal import AdCreative


def _render_ad(ad: AdCreative, ad_url: str) -> str:
    if ad.ad_type == "html" and ad.html_content:
        # Untrusted advertiser markup: scripts allowed, same-origin access not
        frame = (
            f'<iframe class="ad-frame" title="{escape(ad.title)}" '
            f'sandbox="allow-scripts allow-popups" srcdoc="{escape(ad.html_content)}"></iframe>'
        )
        return f'{frame}\n<a class="ad-link" href="{escape(ad_url)}" target="_blank" rel="noopener">Visit advertiser</a>'

    return (
        f'<a class="ad-link" href="{escape(ad_url)}" target="_blank" rel="noopener">'
        f'<img class="ad-image" src="{escape(ad.image_url or "")}" alt="{escape(ad.title)}"></a>'
    )


def render_gateway_page(
    controller: GatewayController,
    continue_url: str,
    ad_url: str | None,
) -> str:
    """Render the interstitial for a READY visit."""
    link = controller.link
    assert link is not None

    remaining = controller.remaining
    ready = controller.can_continue
    disabled = "" if ready else " disabled"
    button_text = "Continue to content" if ready else f"Continue in {remaining}s"

    ad_block = ""
    if controller.ad is not None and ad_url is not None:
        ad_block = f'<section class="ad" aria-label="Advertisement">{_render_ad(controller.ad, ad_url)}</section>'

    description = f"<p>{escape(link.description)}</p>" if link.description else ""
    auto = "true" if controller.auto_navigate else "false"

    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<meta name="robots" content="noindex">
<title>{escape(link.title)}</title>
</head>
<body>
<main>
<h1>{escape(link.title)}</h1>
{description}
{ad_block}
<form id="continue" method="post" action="{escape(continue_url)}">
<button id="continue-button" type="submit"{disabled}>{escape(button_text)}</button>
</form>
</main>
<script>
(function () {{
  var remaining = {remaining};
  var autoNavigate = {auto};
  var button = document.getElementById("continue-button");
  var form = document.getElementById("continue");
  function done() {{
    button.disabled = false;
    button.textContent = "Continue to content";
    if (autoNavigate) {{ form.submit(); }}
  }}
  if (remaining <= 0) {{ done(); return; }}
  var timer = setInterval(function () {{
    remaining -= 1;
    if (remaining <= 0) {{ clearInterval(timer); done(); }}
    else {{ button.textContent = "Continue in " + remaining + "s"; }}
  }}, {int(controller.tick_interval * 1000)});
}})();
</script>
</body>
</html>
"""
