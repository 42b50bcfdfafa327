"""Add content rating and style-learning tables

Revision ID: learning_001
Revises:
Create Date: 2026-10-19

Adds tables for the rating / pattern-learning loop:
- content_ratings: human ratings, one per (content, user)
- content_evaluations: AI evaluator scores, one per (content, model)
- content_patterns: mined patterns, one per (niche, tone, template_type, platform)
- user_content_preferences: per-user learning configuration
- pattern_applications: append-only pattern usage log

content_history is owned by the generation pipeline and is created here
only if it does not exist yet.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'learning_001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    bind = op.get_bind()
    if not sa.inspect(bind).has_table('content_history'):
        op.create_table('content_history',
            sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
            sa.Column('user_id', sa.Integer(), nullable=True),
            sa.Column('niche', sa.String(length=50), nullable=False),
            sa.Column('tone', sa.String(length=50), nullable=False),
            sa.Column('content_type', sa.String(length=100), nullable=False),
            sa.Column('product_name', sa.String(length=255), nullable=True),
            sa.Column('prompt_text', sa.Text(), nullable=True),
            sa.Column('output_text', sa.Text(), nullable=False),
            sa.Column('created_at', sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint('id')
        )
        op.create_index('idx_content_history_group', 'content_history', ['niche', 'tone', 'content_type'], unique=False)
        op.create_index(op.f('ix_content_history_user_id'), 'content_history', ['user_id'], unique=False)
        op.create_index(op.f('ix_content_history_niche'), 'content_history', ['niche'], unique=False)
        op.create_index(op.f('ix_content_history_created_at'), 'content_history', ['created_at'], unique=False)

    # Create content_ratings table
    op.create_table('content_ratings',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('content_history_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('overall_rating', sa.Integer(), nullable=False),
        sa.Column('instagram_rating', sa.Integer(), nullable=True),
        sa.Column('tiktok_rating', sa.Integer(), nullable=True),
        sa.Column('youtube_rating', sa.Integer(), nullable=True),
        sa.Column('twitter_rating', sa.Integer(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('rated_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['content_history_id'], ['content_history.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_rating_content_user', 'content_ratings', ['content_history_id', 'user_id'], unique=True)
    op.create_index(op.f('ix_content_ratings_content_history_id'), 'content_ratings', ['content_history_id'], unique=False)
    op.create_index(op.f('ix_content_ratings_user_id'), 'content_ratings', ['user_id'], unique=False)
    op.create_index(op.f('ix_content_ratings_overall_rating'), 'content_ratings', ['overall_rating'], unique=False)

    # Create content_evaluations table
    op.create_table('content_evaluations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('content_history_id', sa.Integer(), nullable=False),
        sa.Column('evaluator_model', sa.String(length=100), nullable=False),
        sa.Column('virality_score', sa.Integer(), nullable=False),
        sa.Column('clarity_score', sa.Integer(), nullable=False),
        sa.Column('persuasiveness_score', sa.Integer(), nullable=False),
        sa.Column('creativity_score', sa.Integer(), nullable=False),
        sa.Column('virality_justification', sa.Text(), nullable=True),
        sa.Column('clarity_justification', sa.Text(), nullable=True),
        sa.Column('persuasiveness_justification', sa.Text(), nullable=True),
        sa.Column('creativity_justification', sa.Text(), nullable=True),
        sa.Column('overall_score', sa.Numeric(precision=4, scale=1), nullable=False),
        sa.Column('needs_revision', sa.Boolean(), nullable=False),
        sa.Column('improvement_suggestions', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['content_history_id'], ['content_history.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_evaluation_content_model', 'content_evaluations', ['content_history_id', 'evaluator_model'], unique=True)
    op.create_index(op.f('ix_content_evaluations_content_history_id'), 'content_evaluations', ['content_history_id'], unique=False)
    op.create_index(op.f('ix_content_evaluations_overall_score'), 'content_evaluations', ['overall_score'], unique=False)

    # Create content_patterns table
    op.create_table('content_patterns',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('pattern_name', sa.String(length=255), nullable=False),
        sa.Column('niche', sa.String(length=50), nullable=False),
        sa.Column('template_type', sa.String(length=100), nullable=False),
        sa.Column('tone', sa.String(length=50), nullable=False),
        sa.Column('platform', sa.String(length=50), nullable=False),
        sa.Column('average_rating', sa.Numeric(precision=5, scale=2), nullable=False),
        sa.Column('sample_count', sa.Integer(), nullable=False),
        sa.Column('confidence', sa.Float(), nullable=False),
        sa.Column('average_word_count', sa.Integer(), nullable=True),
        sa.Column('common_phrases', sa.JSON(), nullable=False),
        sa.Column('emotional_tone', sa.String(length=50), nullable=True),
        sa.Column('hook_type', sa.String(length=50), nullable=True),
        sa.Column('call_to_action_style', sa.String(length=50), nullable=True),
        sa.Column('best_performing_elements', sa.JSON(), nullable=True),
        sa.Column('avoidance_patterns', sa.JSON(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('idx_pattern_group', 'content_patterns', ['niche', 'tone', 'template_type', 'platform'], unique=True)
    op.create_index('idx_pattern_active_rating', 'content_patterns', ['is_active', 'average_rating'], unique=False)
    op.create_index(op.f('ix_content_patterns_niche'), 'content_patterns', ['niche'], unique=False)

    # Create user_content_preferences table
    op.create_table('user_content_preferences',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('use_smart_learning', sa.Boolean(), nullable=False),
        sa.Column('learning_intensity', sa.String(length=20), nullable=False),
        sa.Column('min_overall_rating', sa.Integer(), nullable=False),
        sa.Column('min_platform_rating', sa.Integer(), nullable=False),
        sa.Column('personalized_weights', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_content_preferences_user_id'), 'user_content_preferences', ['user_id'], unique=True)

    # Create pattern_applications table
    op.create_table('pattern_applications',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('content_history_id', sa.Integer(), nullable=False),
        sa.Column('pattern_id', sa.Integer(), nullable=True),
        sa.Column('application_strength', sa.Float(), nullable=False),
        sa.Column('modified_attributes', sa.JSON(), nullable=False),
        sa.Column('applied_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['content_history_id'], ['content_history.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['pattern_id'], ['content_patterns.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_pattern_applications_content_history_id'), 'pattern_applications', ['content_history_id'], unique=False)
    op.create_index(op.f('ix_pattern_applications_pattern_id'), 'pattern_applications', ['pattern_id'], unique=False)


def downgrade():
    # Drop pattern_applications table
    op.drop_index(op.f('ix_pattern_applications_pattern_id'), table_name='pattern_applications')
    op.drop_index(op.f('ix_pattern_applications_content_history_id'), table_name='pattern_applications')
    op.drop_table('pattern_applications')

    # Drop user_content_preferences table
    op.drop_index(op.f('ix_user_content_preferences_user_id'), table_name='user_content_preferences')
    op.drop_table('user_content_preferences')

    # Drop content_patterns table
    op.drop_index(op.f('ix_content_patterns_niche'), table_name='content_patterns')
    op.drop_index('idx_pattern_active_rating', table_name='content_patterns')
    op.drop_index('idx_pattern_group', table_name='content_patterns')
    op.drop_table('content_patterns')

    # Drop content_evaluations table
    op.drop_index(op.f('ix_content_evaluations_overall_score'), table_name='content_evaluations')
    op.drop_index(op.f('ix_content_evaluations_content_history_id'), table_name='content_evaluations')
    op.drop_index('idx_evaluation_content_model', table_name='content_evaluations')
    op.drop_table('content_evaluations')

    # Drop content_ratings table
    op.drop_index(op.f('ix_content_ratings_overall_rating'), table_name='content_ratings')
    op.drop_index(op.f('ix_content_ratings_user_id'), table_name='content_ratings')
    op.drop_index(op.f('ix_content_ratings_content_history_id'), table_name='content_ratings')
    op.drop_index('idx_rating_content_user', table_name='content_ratings')
    op.drop_table('content_ratings')

    # content_history belongs to the generation pipeline and is left in place
