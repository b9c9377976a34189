from __future__ import annotations

from django.utils.deprecation import MiddlewareMixin


class ContentSecurityPolicyMiddleware(MiddlewareMixin):
    """Add a basic Content-Security-Policy header.

    The API serves JSON and file downloads, so the policy is strict. The
    interactive docs pages load Swagger UI / ReDoc from the jsDelivr CDN
    and need a relaxed script/style policy on those paths only.
    """

    DOCS_PATHS = ("/docs/", "/redoc/")
    CDN = "https://cdn.jsdelivr.net"

    def process_response(self, request, response):  # noqa: D401
        script_src = "'self'"
        style_src = "'self'"
        img_src = "'self' data:"
        if request.path in self.DOCS_PATHS:
            script_src = f"'self' 'unsafe-inline' {self.CDN}"
            style_src = f"'self' 'unsafe-inline' {self.CDN}"
            img_src = f"'self' data: {self.CDN}"

        csp = (
            "default-src 'self'; "
            f"img-src {img_src}; "
            f"script-src {script_src}; "
            f"style-src {style_src}; "
            "frame-ancestors 'none'"
        )
        response["Content-Security-Policy"] = csp
        return response
