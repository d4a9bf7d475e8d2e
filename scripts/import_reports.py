#!/usr/bin/env python3
"""研报 Excel 离线导入脚本。

与管理后台的 "Excel 导入" 功能使用同一套解析与写入逻辑，
适合一次性导入大量历史研报。

功能：
    1. 解析 .xlsx 工作簿（表头支持 Title / Description / Download URL /
       Source / Published Date 或对应的字段名）
    2. 缺少标题或下载地址的行跳过，其余行必须全部合法
    3. 以指定管理员身份一次性写入（全部成功或全部回滚）

用法示例：
    python3 scripts/import_reports.py reports.xlsx --as-user admin
    python3 scripts/import_reports.py reports.xlsx --as-user admin --category <id>
    python3 scripts/import_reports.py reports.xlsx --dry-run

注意：
    本脚本需要数据库连接配置（通过环境变量或 .env 文件）。
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# 将项目根目录添加到 Python 路径
sys.path.insert(0, str(Path(__file__).parent.parent))

logger = logging.getLogger(__name__)


async def import_reports(
    path: Path,
    username: str | None,
    category_id: str | None = None,
    dry_run: bool = False,
) -> dict:
    """Parse ``path`` and insert its rows as ``username``.

    Returns:
        dict: ``parsed``, ``skipped`` and ``created`` counts.
    """
    from apps.report.importer import parse_workbook
    from apps.report.service import ReportService
    from apps.auth.service import AuthService
    from core.database import close_db, get_session_factory
    from core.permissions import CallerIdentity
    from settings import settings

    parsed = parse_workbook(path, max_rows=settings.import_max_rows)
    rows = parsed.rows
    if category_id:
        rows = [row.model_copy(update={"category_id": category_id}) for row in rows]
    stats = {"parsed": len(rows), "skipped": parsed.skipped, "created": 0}
    if dry_run:
        return stats

    factory = get_session_factory()
    try:
        async with factory() as session:
            profile = await AuthService.get_profile_by_username(session, username)
            if profile is None:
                raise ValueError(f"Profile not found: {username}")
            caller = CallerIdentity(subject_id=profile.id, role=profile.role)
            try:
                reports = await ReportService().create_reports_batch(
                    session, caller, rows
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            stats["created"] = len(reports)
    finally:
        await close_db()
    return stats


def main():
    parser = argparse.ArgumentParser(
        description="Import research reports from an .xlsx workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("path", type=Path, help="Path to the .xlsx workbook")
    parser.add_argument(
        "--as-user",
        dest="username",
        default=None,
        help="管理员用户名，导入的研报以其身份创建",
    )
    parser.add_argument(
        "--category",
        dest="category_id",
        default=None,
        help="为所有导入的研报设置同一分类 ID",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="只解析和校验，不写入数据库",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="显示详细输出",
    )
    args = parser.parse_args()

    if not args.dry_run and not args.username:
        parser.error("--as-user is required unless --dry-run is given")

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    from core.exceptions import ReportHubError

    try:
        stats = asyncio.run(import_reports(
            path=args.path,
            username=args.username,
            category_id=args.category_id,
            dry_run=args.dry_run,
        ))
    except (ReportHubError, ValueError) as e:
        logger.error(f"Import failed: {e}")
        for error in getattr(e, "errors", []):
            logger.error(f"  {error}")
        sys.exit(1)

    print()
    print(f"有效行:   {stats['parsed']}")
    print(f"跳过行:   {stats['skipped']}")
    print(f"已导入:   {stats['created']}")


if __name__ == "__main__":
    main()
