from alembic import op
import sqlalchemy as sa

revision = '20261019_0001'
down_revision = None
branch_labels = None
depends_on = None

PATTERNS = ('DAILY', 'WEEKLY', 'MONTHLY', 'YEARLY')


def upgrade():
    op.create_table('recurring_templates',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('memo', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('importance', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('pattern', sa.Enum(*PATTERNS, name='patternenum'), nullable=False),
        sa.Column('interval', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('weekdays', sa.JSON(), nullable=True),
        sa.Column('day_of_month', sa.Integer(), nullable=True),
        sa.Column('month_of_year', sa.Integer(), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_recurring_templates_user_id', 'recurring_templates', ['user_id'])
    op.create_index('ix_templates_user_active_pattern', 'recurring_templates', ['user_id', 'active', 'pattern'])

    op.create_table('tasks',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('display_number', sa.String(13), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('memo', sa.Text(), nullable=True),
        sa.Column('category', sa.String(), nullable=True),
        sa.Column('importance', sa.Integer(), nullable=False, server_default='3'),
        sa.Column('due_date', sa.Date(), nullable=False, server_default='2999-12-31'),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('task_type', sa.Enum('NORMAL', 'RECURRING', 'IDEA', 'INBOX', name='tasktypeenum'),
                  nullable=False, server_default='NORMAL'),
        sa.Column('archived', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sort_order', sa.Float(), nullable=False, server_default='0'),
        sa.Column('recurring_template_id', sa.String(), nullable=True),
        sa.Column('recurring_pattern', sa.Enum(*PATTERNS, name='patternenum'), nullable=True),
        sa.Column('carried_from_task_id', sa.String(), nullable=True),
        sa.Column('carried_from_template_id', sa.String(), nullable=True),
        sa.Column('carried_through', sa.Date(), nullable=True),
        sa.Column('rollover_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_tasks_display_number', 'tasks', ['display_number'])
    op.create_index('ix_tasks_carried_from_task_id', 'tasks', ['carried_from_task_id'])
    op.create_index('ix_tasks_user_id', 'tasks', ['user_id'])
    op.create_index('ix_tasks_user_template_due', 'tasks', ['user_id', 'recurring_template_id', 'due_date'])
    op.create_index('ix_tasks_user_completed_due', 'tasks', ['user_id', 'completed', 'due_date'])
    op.create_index('ix_tasks_user_category_completed', 'tasks', ['user_id', 'category', 'completed'])

    op.create_table('subtasks',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('parent_task_id', sa.String(), sa.ForeignKey('tasks.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('completed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_subtasks_parent_task_id', 'subtasks', ['parent_task_id'])
    op.create_index('ix_subtasks_user_id', 'subtasks', ['user_id'])

    op.create_table('completions',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('original_task_id', sa.String(), nullable=False),
        sa.Column('template_id', sa.String(), nullable=True),
        sa.Column('task_title', sa.Text(), nullable=False),
        sa.Column('completion_date', sa.Date(), nullable=False),
        sa.Column('completion_time', sa.DateTime(), nullable=False),
        sa.Column('user_id', sa.String(), nullable=False),
    )
    op.create_index('ix_completions_original_task_id', 'completions', ['original_task_id'])
    op.create_index('ix_completions_template_id', 'completions', ['template_id'])
    op.create_index('ix_completions_user_id', 'completions', ['user_id'])
    op.create_index('ix_completions_user_task_date', 'completions', ['user_id', 'original_task_id', 'completion_date'])
    op.create_index('ix_completions_user_date', 'completions', ['user_id', 'completion_date'])

    op.create_table('generation_metadata',
        sa.Column('id', sa.String(), primary_key=True),
        sa.Column('user_id', sa.String(), nullable=False),
        sa.Column('key', sa.String(), nullable=False),
        sa.Column('value', sa.String(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_metadata_user_key', 'generation_metadata', ['user_id', 'key'])


def downgrade():
    op.drop_table('generation_metadata')
    op.drop_table('completions')
    op.drop_table('subtasks')
    op.drop_table('tasks')
    op.drop_table('recurring_templates')
    op.execute("DROP TYPE IF EXISTS tasktypeenum")
    op.execute("DROP TYPE IF EXISTS patternenum")
