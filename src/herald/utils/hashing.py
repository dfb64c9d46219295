"""哈希工具."""

import hashlib

FINGERPRINT_PREFIX = "fp:"


def entry_fingerprint(link: str, title: str) -> str:
    """根据链接和标题生成条目指纹，用作缺失 guid 时的去重键."""
    digest = hashlib.sha256(f"{link}\n{title}".encode()).hexdigest()
    return f"{FINGERPRINT_PREFIX}{digest}"
