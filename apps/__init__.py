"""ReportHub application packages.

每个子包对应一种资源，包含 models / schemas / service / api 四层。
"""


def load_models() -> None:
    """Import every ORM model module so it registers on ``Base.metadata``."""
    # 延迟导入，避免 core.database 与各 app 之间的循环依赖
    import core.models  # noqa: F401
    import apps.category.models  # noqa: F401
    import apps.report.models  # noqa: F401
    import apps.download.models  # noqa: F401
    import apps.homepage.models  # noqa: F401
