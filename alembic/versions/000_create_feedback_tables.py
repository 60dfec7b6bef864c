"""Create feedback form tables (api_users, forms, questions, responses, answers)

Revision ID: 000_create_feedback_tables
Revises:
Create Date: 2026-10-19

Note: answers.question_id has no foreign key. Editing a form recreates its
questions and historical answers keep pointing at the old ids.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import text

# revision identifiers, used by Alembic.
revision = '000_create_feedback_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    """Create feedback form tables."""
    conn = op.get_bind()

    # Create enums using DO block with exception handling (works with async drivers)
    enums = [
        ("form_status_enum", ['DRAFT', 'ACTIVE', 'INACTIVE']),
        ("question_type_enum", ['TEXT', 'TEXTAREA', 'MULTIPLE_CHOICE', 'RATING']),
    ]

    for enum_name, values in enums:
        values_str = ", ".join([f"'{v}'" for v in values])
        conn.execute(text(f"""
            DO $$
            BEGIN
                CREATE TYPE {enum_name} AS ENUM ({values_str});
            EXCEPTION
                WHEN duplicate_object THEN NULL;
            END $$;
        """))

    op.create_table(
        'api_users',
        sa.Column('id', sa.Integer(), primary_key=True, index=True),
        sa.Column('email', sa.String(255), nullable=False, unique=True, index=True),
        sa.Column('hashed_password', sa.String(255), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('company', sa.String(255)),
        sa.Column('is_active', sa.Boolean(), default=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), onupdate=sa.func.now()),
    )

    op.create_table(
        'forms',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('api_users.id'), nullable=False, index=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('status', sa.Enum('DRAFT', 'ACTIVE', 'INACTIVE', name='form_status_enum', create_type=False),
                  nullable=False, server_default='DRAFT'),
        sa.Column('public_url', sa.String(300), nullable=False, unique=True, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
    )

    op.create_table(
        'questions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('form_id', sa.String(36), sa.ForeignKey('forms.id'), nullable=False, index=True),
        sa.Column('question_text', sa.Text(), nullable=False),
        sa.Column('question_type', sa.Enum('TEXT', 'TEXTAREA', 'MULTIPLE_CHOICE', 'RATING',
                                           name='question_type_enum', create_type=False), nullable=False),
        sa.Column('is_required', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('order_index', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('options', sa.JSON()),
    )

    op.create_table(
        'responses',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('form_id', sa.String(36), sa.ForeignKey('forms.id'), nullable=False, index=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.func.now(), index=True),
        sa.Column('ip_address', sa.String(100)),
        sa.Column('user_agent', sa.Text()),
    )

    op.create_table(
        'answers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('response_id', sa.String(36), sa.ForeignKey('responses.id'), nullable=False, index=True),
        sa.Column('question_id', sa.String(36), nullable=False, index=True),
        sa.Column('answer_text', sa.Text()),
    )


def downgrade():
    """Drop feedback form tables."""
    op.drop_table('answers')
    op.drop_table('responses')
    op.drop_table('questions')
    op.drop_table('forms')
    op.drop_table('api_users')

    op.execute("""
        DROP TYPE IF EXISTS question_type_enum;
        DROP TYPE IF EXISTS form_status_enum;
    """)
