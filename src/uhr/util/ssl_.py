from __future__ import annotations

import os
import ssl
import typing

ALPN_PROTOCOLS = ["http/1.1"]


def resolve_cert_reqs(candidate: None | int | str) -> ssl.VerifyMode:
    """
    Resolves the argument to a numeric constant, which can be passed to
    :attr:`ssl.SSLContext.verify_mode`.
    Defaults to :data:`ssl.CERT_REQUIRED`.
    If given a string it is assumed to be the name of the constant in the
    :mod:`ssl` module or its abbreviation.
    (So you can specify `REQUIRED` instead of `CERT_REQUIRED`.
    If it's neither `None` nor a string we assume it is already the numeric
    constant.
    """
    if candidate is None:
        return ssl.CERT_REQUIRED

    if isinstance(candidate, str):
        res = getattr(ssl, candidate, None)
        if res is None:
            res = getattr(ssl, "CERT_" + candidate)
        return res  # type: ignore[no-any-return]

    return ssl.VerifyMode(candidate)


def create_uhr_context(
    cert_reqs: int | None = None,
    ca_certs: str | None = None,
    ssl_minimum_version: int | None = None,
) -> ssl.SSLContext:
    """Creates the client-side :class:`ssl.SSLContext` used for HTTPS requests.

    It:

    - Requires TLS 1.2 or newer unless ``ssl_minimum_version`` says otherwise
    - Disables compression and session tickets
    - Verifies the peer certificate and host name unless ``cert_reqs`` is
      :data:`ssl.CERT_NONE`

    :param cert_reqs:
        Whether to require the certificate verification. This defaults to
        ``ssl.CERT_REQUIRED``.
    :param ca_certs:
        Path of a PEM bundle with the trusted CAs. The system default
        certificates are loaded when omitted.
    :param ssl_minimum_version:
        The minimum version of TLS to be used. Use the 'ssl.TLSVersion' enum for specifying the value.
    :returns:
        Constructed SSLContext object with specified options
    :rtype: SSLContext
    """
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    context.minimum_version = typing.cast(
        ssl.TLSVersion, ssl_minimum_version or ssl.TLSVersion.TLSv1_2
    )
    context.options |= ssl.OP_NO_COMPRESSION | ssl.OP_NO_TICKET

    if hasattr(context, "set_alpn_protocols"):
        context.set_alpn_protocols(ALPN_PROTOCOLS)

    cert_reqs = resolve_cert_reqs(cert_reqs)
    if cert_reqs == ssl.CERT_NONE:
        # check_hostname must be off before verify_mode may be relaxed
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    context.verify_mode = cert_reqs
    context.check_hostname = True
    if ca_certs:
        context.load_verify_locations(cafile=os.path.expanduser(ca_certs))
    else:
        context.load_default_certs()
    return context
