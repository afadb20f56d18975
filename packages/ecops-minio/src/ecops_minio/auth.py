"""
AWS Signature V4 signing for admin API requests.

The admin API authenticates every request with SigV4 (service "s3"). This
module adapts botocore's signer to httpx's auth flow so the admin client
can stay a plain injected httpx.AsyncClient.

The body hash is always sent in X-Amz-Content-Sha256; the server checks it
against the payload even over TLS.
"""

import hashlib
from collections.abc import Generator

import httpx
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

DEFAULT_REGION = "us-east-1"
SIGNING_SERVICE = "s3"

# Headers copied onto the outgoing request after signing
_SIGNATURE_HEADERS = ("Authorization", "X-Amz-Date", "X-Amz-Security-Token")


class AdminSigV4Auth(httpx.Auth):
    """
    httpx auth that signs each request with SigV4.

    Example:
        auth = AdminSigV4Auth("minioadmin", "minioadmin")
        async with httpx.AsyncClient(base_url="http://minio:9000", auth=auth) as http:
            await http.get("/minio/admin/v3/storageinfo")
    """

    requires_request_body = True

    def __init__(
        self,
        access_key: str,
        secret_key: str,
        region: str = DEFAULT_REGION,
        session_token: str | None = None,
    ) -> None:
        self._credentials = Credentials(access_key, secret_key, session_token)
        self._region = region

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        body = request.content
        request.headers["X-Amz-Content-Sha256"] = hashlib.sha256(body).hexdigest()

        signable = AWSRequest(
            method=request.method,
            url=str(request.url),
            data=body,
            headers={
                "Host": request.headers["Host"],
                "X-Amz-Content-Sha256": request.headers["X-Amz-Content-Sha256"],
            },
        )
        SigV4Auth(self._credentials, SIGNING_SERVICE, self._region).add_auth(signable)

        for name in _SIGNATURE_HEADERS:
            if name in signable.headers:
                request.headers[name] = signable.headers[name]
        yield request
