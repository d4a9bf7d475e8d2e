"""initial schema: profiles, categories, reports, download logs, homepage config

Revision ID: init001
Revises:
Create Date: 2026-10-19 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'init001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the ReportHub tables."""
    op.create_table(
        'profiles',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('username', sa.String(50), nullable=False),
        sa.Column('email', sa.String(100), nullable=True),
        sa.Column('role', sa.String(20), nullable=False, server_default='user',
                  comment='user, admin'),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        mysql_charset='utf8mb4',
        mysql_collate='utf8mb4_unicode_ci',
        mysql_comment='用户资料表',
    )
    op.create_index('ix_profiles_username', 'profiles', ['username'], unique=True)

    op.create_table(
        'categories',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(100), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        mysql_charset='utf8mb4',
        mysql_collate='utf8mb4_unicode_ci',
        mysql_comment='研报分类表',
    )

    op.create_table(
        'reports',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('category_id', sa.String(36), nullable=True),
        sa.Column('pdf_url', sa.String(1024), nullable=False),
        sa.Column('source', sa.String(255), nullable=True),
        sa.Column('published_at', sa.Date(), nullable=True),
        sa.Column('view_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('download_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_by', sa.String(36), nullable=True,
                  comment='Profile.id of the creator'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint('view_count >= 0', name='ck_reports_view_count'),
        sa.CheckConstraint('download_count >= 0', name='ck_reports_download_count'),
        sa.ForeignKeyConstraint(['category_id'], ['categories.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        mysql_charset='utf8mb4',
        mysql_collate='utf8mb4_unicode_ci',
        mysql_comment='研报表',
    )
    op.create_index('ix_reports_category_id', 'reports', ['category_id'], unique=False)

    op.create_table(
        'download_logs',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('report_id', sa.String(36), nullable=False),
        sa.Column('user_id', sa.String(36), nullable=True),
        sa.Column('downloaded_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['report_id'], ['reports.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        mysql_charset='utf8mb4',
        mysql_collate='utf8mb4_unicode_ci',
        mysql_comment='下载记录表',
    )
    op.create_index('ix_download_logs_report_id', 'download_logs', ['report_id'], unique=False)
    op.create_index('ix_download_logs_user_id', 'download_logs', ['user_id'], unique=False)
    op.create_index('ix_download_logs_downloaded_at', 'download_logs', ['downloaded_at'], unique=False)

    op.create_table(
        'homepage_config',
        sa.Column('id', sa.String(36), nullable=False),
        sa.Column('mission', sa.Text(), nullable=True),
        sa.Column('features', sa.JSON(), nullable=False),
        sa.Column('advantages', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        mysql_charset='utf8mb4',
        mysql_collate='utf8mb4_unicode_ci',
        mysql_comment='首页配置表',
    )
    op.create_index('ix_homepage_config_updated_at', 'homepage_config', ['updated_at'], unique=False)


def downgrade() -> None:
    """Drop the ReportHub tables."""
    op.drop_index('ix_homepage_config_updated_at', table_name='homepage_config')
    op.drop_table('homepage_config')
    op.drop_index('ix_download_logs_downloaded_at', table_name='download_logs')
    op.drop_index('ix_download_logs_user_id', table_name='download_logs')
    op.drop_index('ix_download_logs_report_id', table_name='download_logs')
    op.drop_table('download_logs')
    op.drop_index('ix_reports_category_id', table_name='reports')
    op.drop_table('reports')
    op.drop_table('categories')
    op.drop_index('ix_profiles_username', table_name='profiles')
    op.drop_table('profiles')
