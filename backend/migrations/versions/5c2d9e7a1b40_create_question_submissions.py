"""create question_submissions

Revision ID: 5c2d9e7a1b40
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5c2d9e7a1b40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)

    # Tables may already exist when the question admin shares this database
    if 'question_submissions' in set(insp.get_table_names()):
        return

    op.create_table(
        'question_submissions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('type', sa.String(length=16), nullable=False, server_default='text'),
        sa.Column('question', sa.Text(), nullable=False),
        sa.Column('correct_answer', sa.Text(), nullable=True),
        sa.Column('alt_answers_json', sa.Text(), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
    )
    op.create_index('ix_question_submissions_status', 'question_submissions', ['status'])


def downgrade():
    bind = op.get_bind()
    insp = sa.inspect(bind)
    if 'question_submissions' not in set(insp.get_table_names()):
        return
    op.drop_index('ix_question_submissions_status', table_name='question_submissions')
    op.drop_table('question_submissions')
