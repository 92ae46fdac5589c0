from urllib.parse import quote


def is_scoped_package_name(package_name: str) -> bool:
    return package_name.startswith("@")


def encode_package_name(package_name: str) -> str:
    """Percent-encode a package name for the registry document URL.

    For scoped names the leading ``@`` is kept and the rest is encoded,
    so ``@babel/core`` becomes ``@babel%2Fcore``.
    """
    # safe set mirrors encodeURIComponent, which registries expect
    if is_scoped_package_name(package_name):
        return "@" + quote(package_name[1:], safe="!'()*-._~")
    return quote(package_name, safe="!'()*-._~")


def tarball_name(package_name: str) -> str:
    """Unscoped file name stem of a package tarball."""
    if is_scoped_package_name(package_name):
        return package_name.split("/")[1]
    return package_name


def info_path(package_name: str) -> str:
    return f"/{encode_package_name(package_name)}"


def tarball_path(package_name: str, version: str) -> str:
    """Registry path of a tarball, e.g. ``/@scope/name/-/name-1.2.3.tgz``."""
    return f"/{package_name}/-/{tarball_name(package_name)}-{version}.tgz"
