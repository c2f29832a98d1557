# Copyright 2026 The Chromium Authors
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.
"""
The identity module finds code signing identities in keychains.
"""

import re

from macpack import config, model

RESERVED_PREFIXES = tuple(cert_type.prefix for cert_type in (
    model.CertificateType.DEVELOPER_ID_APPLICATION,
    model.CertificateType.MAC_APP_STORE_APPLICATION,
    model.CertificateType.DEVELOPER_ID_INSTALLER,
    model.CertificateType.MAC_APP_STORE_INSTALLER,
))

_IDENTITY_LINE = re.compile(r'^\s*\d+\)\s+([0-9A-Fa-f]{40})\s+"([^"]+)"')


def parse_identities(output):
    """Parses the output of `security find-identity`.

    Args:
        output: The decoded output, for example
            '  1) 0123...CDEF "Developer ID Application: Jane Doe (TEAMID)"'.

    Returns:
        A list of (sha1, name) tuples in the order they were listed, without
        duplicates. `security` lists an identity once per keychain it is found
        in.
    """
    identities = []
    for line in output.splitlines():
        match = _IDENTITY_LINE.match(line)
        if not match:
            continue
        entry = (match.group(1).upper(), match.group(2))
        if entry not in identities:
            identities.append(entry)
    return identities


def check_prefix(name):
    """Raises a |config.ConfigError| if |name| starts with a certificate class
    prefix. The prefix is chosen automatically from the certificate type.
    """
    for prefix in RESERVED_PREFIXES:
        if name.startswith(prefix):
            raise config.ConfigError(
                'Please remove prefix "{}" from the specified name, the '
                'appropriate certificate will be chosen automatically'.format(
                    prefix))


async def scan(config, cert_type, keychain=None):
    """Returns the name of the first valid identity of |cert_type|, or None.

    Args:
        config: The |config.PackConfig|.
        cert_type: A |model.CertificateType|.
        keychain: The keychain to search, or None for the default search list.
    """
    for _, name in await config.invoker.keychain.find_identities(keychain):
        if name.startswith(cert_type.prefix):
            return name
    return None


async def find_identity(config, cert_type, name=None, keychain=None):
    """Finds a signing identity of |cert_type|.

    The CSC_NAME environment variable, or else |name|, selects an identity
    explicitly. It is given without the certificate class prefix, e.g.
    "Jane Doe (TEAMID)", or as the identity's SHA-1 hash. If neither is set,
    the first identity of |cert_type| is used.

    Args:
        config: The |config.PackConfig|.
        cert_type: A |model.CertificateType|.
        name: The configured identity name, if any.
        keychain: The keychain to search, or None for the default search list.

    Returns:
        The full identity name, or None if no identity was requested
        explicitly and none was found.

    Raises:
        config.ConfigError if the explicit name carries a certificate class
            prefix or does not match a valid identity.
    """
    explicit = config.environment.csc_name or name
    if explicit is None or not explicit.strip():
        return await scan(config, cert_type, keychain)

    explicit = explicit.strip()
    check_prefix(explicit)
    full_name = '{} {}'.format(cert_type.prefix, explicit)
    for sha1, identity in await config.invoker.keychain.find_identities(
            keychain):
        if identity == full_name or (identity.startswith(cert_type.prefix) and
                                     sha1 == explicit.upper()):
            return identity
    raise _identity_not_found(explicit)


def _identity_not_found(explicit):
    return config.ConfigError(
        'Identity name "{}" is specified, but no valid identity with this name '
        'is in the keychain'.format(explicit))
