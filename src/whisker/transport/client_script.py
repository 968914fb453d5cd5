"""Browser client — script injection for reflex-enabled pages.

Injects a small script into HTML responses that:
1. Subscribes to the page's topic on Whisker's SSE endpoint
2. Applies ``whisker:morph`` batches (inner HTML of each target)
3. Re-dispatches ``whisker:dispatch`` events on ``document`` as DOM events
   (``server-message`` carries error / halted / none outcomes)
4. Posts reflex messages for elements with ``data-reflex="event->name#method"``
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chirp.http.request import Request
    from chirp.http.response import Response, SSEResponse, StreamingResponse
    from chirp.middleware.protocol import Next

    AnyResponse = Response | StreamingResponse | SSEResponse


# No framework dependency: native EventSource and fetch only.
CLIENT_SCRIPT = """\
<script data-whisker-client>
(function() {
  var topic = location.pathname;
  var qs = '?topic=' + encodeURIComponent(topic);
  var src = new EventSource('/__whisker/events' + qs);
  src.addEventListener('whisker:morph', function(e) {
    var batch = JSON.parse(e.data);
    batch.operations.forEach(function(op) {
      var el = document.querySelector(op.selector);
      if (!el) return;
      var keep = op.permanentAttributeName
        ? el.querySelectorAll('[' + op.permanentAttributeName + ']') : [];
      if (op.childrenOnly) { el.innerHTML = op.html; } else { el.outerHTML = op.html; }
      for (var i = 0; i < keep.length; i++) {
        var fresh = keep[i].id && document.getElementById(keep[i].id);
        if (fresh) fresh.replaceWith(keep[i]);
      }
      if (op.metadata && op.metadata.last) {
        document.dispatchEvent(new CustomEvent('whisker:after', {detail: op.metadata}));
      }
    });
  });
  src.addEventListener('whisker:dispatch', function(e) {
    var batch = JSON.parse(e.data);
    batch.operations.forEach(function(op) {
      document.dispatchEvent(new CustomEvent(op.name, {detail: op.detail}));
    });
  });
  document.addEventListener('server-message', function(e) {
    var m = e.detail && e.detail.serverMessage;
    if (m && m.subject === 'error') console.error('[whisker]', m.body);
  });
  function attrs(el) {
    var out = {};
    for (var i = 0; i < el.attributes.length; i++) {
      out[el.attributes[i].name] = el.attributes[i].value;
    }
    if ('value' in el) out.value = el.value;
    if ('checked' in el) out.checked = el.checked;
    return out;
  }
  function reflex(target, options) {
    options = options || {};
    return fetch('/__whisker/reflex' + qs, {
      method: 'POST',
      headers: {'Content-Type': 'application/json'},
      body: JSON.stringify({
        url: location.href,
        target: target,
        args: options.args || [],
        morphTarget: options.morphTarget || [],
        renderMode: options.renderMode || 'page',
        params: options.params || {},
        attrs: options.element ? attrs(options.element) : {},
        permanentAttributeName: 'data-reflex-permanent'
      })
    });
  }
  ['click', 'change', 'input', 'submit'].forEach(function(type) {
    document.addEventListener(type, function(e) {
      var el = e.target.closest && e.target.closest('[data-reflex]');
      if (!el) return;
      el.getAttribute('data-reflex').split(/\\s+/).forEach(function(binding) {
        var parts = binding.split('->');
        if (parts.length !== 2 || parts[0] !== type) return;
        if (type === 'submit') e.preventDefault();
        var morph = el.getAttribute('data-reflex-morph');
        reflex(parts[1], {
          element: el,
          morphTarget: morph ? morph.split(',') : [],
          renderMode: el.getAttribute('data-reflex-render') || 'page'
        });
      });
    }, true);
  });
  window.whisker = {reflex: reflex};
})();
</script>
"""


def inject_client_script(body: str) -> str:
    """Insert the client script before ``</body>`` (or ``</html>``, or append)."""
    if "data-whisker-client" in body:
        return body
    if "</body>" in body:
        return body.replace("</body>", CLIENT_SCRIPT + "</body>", 1)
    if "</html>" in body:
        return body.replace("</html>", CLIENT_SCRIPT + "</html>", 1)
    return body + CLIENT_SCRIPT


async def client_script_middleware(request: Request, next: Next) -> AnyResponse:
    """Chirp middleware injecting the client script into HTML responses.

    Streaming and SSE responses pass through untouched.

    """
    response = await next(request)

    if not hasattr(response, "body") or not hasattr(response, "content_type"):
        return response

    if "text/html" not in response.content_type:
        return response

    body = response.body
    if isinstance(body, bytes):
        body = body.decode("utf-8")

    return replace(response, body=inject_client_script(body))
