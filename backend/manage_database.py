#!/usr/bin/env python3
"""
数据库管理脚本
用于手动执行数据库初始化、备份、恢复等操作
"""

from typing import Optional

import typer

from survey.core.config import settings
from survey.core.database import SessionLocal, drop_db, init_db
from survey.core.exceptions import VoteError
from survey.core.logging import configure_logging
from survey.services.admin_service import DatabaseAdminService

cli = typer.Typer(help="投票系统数据库管理工具", no_args_is_help=True)


@cli.command()
def init() -> None:
    """初始化数据库表结构和默认选项"""
    typer.echo("🚀 开始初始化数据库...")
    created = init_db()
    if created:
        typer.echo(f"✅ 已创建表: {', '.join(created)}")
    else:
        typer.echo("✅ 数据库表结构完整，无需初始化")
    status()


@cli.command()
def status() -> None:
    """显示数据库状态"""
    db = SessionLocal()
    try:
        report = DatabaseAdminService(db).get_status()
    finally:
        db.close()

    typer.echo("\n📊 数据库状态报告")
    typer.echo("=" * 50)
    typer.echo(f"🗄️  数据库: {settings.DATABASE_NAME}")
    for table in report:
        if not table["exists"]:
            typer.echo(f"\n❌ 表: {table['table']} 不存在")
            continue
        typer.echo(f"\n📋 表: {table['table']}")
        typer.echo(f"   记录数: {table['count']}")
        typer.echo(f"   字段数: {len(table['columns'])}")
        typer.echo(f"   字段: {', '.join(table['columns'])}")
    typer.echo("\n" + "=" * 50)


@cli.command()
def clear(yes: bool = typer.Option(False, "--yes", "-y", help="跳过确认")) -> None:
    """清空所有表数据"""
    if not yes:
        typer.confirm("将清空所有表数据，是否继续？", abort=True)
    db = SessionLocal()
    try:
        DatabaseAdminService(db).clear_all_tables()
    except VoteError as e:
        typer.echo(f"❌ 清空数据失败: {e}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()
    typer.echo("✅ 所有表数据清空完成")


@cli.command()
def drop(yes: bool = typer.Option(False, "--yes", "-y", help="跳过确认")) -> None:
    """删除所有表"""
    if not yes:
        typer.confirm("将删除所有表，是否继续？", abort=True)
    drop_db()
    typer.echo("✅ 所有表删除完成")


@cli.command()
def backup(output: Optional[str] = typer.Argument(None, help="备份文件名")) -> None:
    """备份数据库到JSON文件"""
    db = SessionLocal()
    try:
        path = DatabaseAdminService(db).backup_to_file(output)
    except VoteError as e:
        typer.echo(f"❌ 备份失败: {e}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()
    typer.echo(f"✅ 数据库备份完成: {path}")


@cli.command()
def restore(backup_file: str = typer.Argument(..., help="备份文件路径")) -> None:
    """从JSON备份文件恢复数据库"""
    db = SessionLocal()
    try:
        count = DatabaseAdminService(db).restore_from_file(backup_file)
    except VoteError as e:
        typer.echo(f"❌ 恢复失败: {e}", err=True)
        raise typer.Exit(code=1)
    finally:
        db.close()
    typer.echo(f"✅ 数据库恢复完成，共 {count} 条投票记录")


def run() -> None:
    configure_logging(level=settings.LOG_LEVEL, json_logs=settings.LOG_JSON)
    cli()


if __name__ == "__main__":
    run()
