"""Herald - RSS/Atom 订阅源抓取服务."""

__version__ = "0.1.0"
