"""create_khairat_tables

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-17 09:12:31.104522

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


fee_type_enum = sa.Enum(
    'keahlian', 'tahunan', 'isteri_kedua', name='khairat_fee_type_enum'
)
application_status_enum = sa.Enum(
    'pending', 'approved', 'rejected', name='khairat_application_status_enum'
)
dependent_relationship_enum = sa.Enum(
    'isteri', 'anak', 'anak_oku', name='khairat_dependent_relationship_enum'
)
payment_status_enum = sa.Enum(
    'pending', 'approved', 'rejected', name='khairat_payment_status_enum'
)
legacy_member_status_enum = sa.Enum(
    'aktif', 'meninggal', 'pindah', 'gantung', name='khairat_legacy_member_status_enum'
)
legacy_payment_status_enum = sa.Enum(
    'paid', 'tunggak', 'prabayar', name='khairat_legacy_payment_status_enum'
)


def upgrade() -> None:
    """Upgrade schema."""
    # Legacy spreadsheet tables first: khairat_ahli references khairat_members
    op.create_table(
        'khairat_members',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('ic_number', sa.String(length=32), nullable=False),
        sa.Column('member_number', sa.String(length=64), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('phone', sa.String(length=64), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('registered_on', sa.Date(), nullable=True),
        sa.Column('spouse', sa.String(length=255), nullable=True),
        sa.Column('child_1', sa.String(length=255), nullable=True),
        sa.Column('child_2', sa.String(length=255), nullable=True),
        sa.Column('child_3', sa.String(length=255), nullable=True),
        sa.Column('child_4', sa.String(length=255), nullable=True),
        sa.Column('child_5', sa.String(length=255), nullable=True),
        sa.Column('child_6', sa.String(length=255), nullable=True),
        sa.Column('child_7', sa.String(length=255), nullable=True),
        sa.Column('child_8', sa.String(length=255), nullable=True),
        sa.Column('father', sa.String(length=255), nullable=True),
        sa.Column('mother', sa.String(length=255), nullable=True),
        sa.Column('father_in_law', sa.String(length=255), nullable=True),
        sa.Column('mother_in_law', sa.String(length=255), nullable=True),
        sa.Column('status', legacy_member_status_enum, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        op.f('ix_khairat_members_ic_number'), 'khairat_members', ['ic_number'], unique=True
    )

    op.create_table(
        'khairat_payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('member_id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('receipt_number', sa.String(length=64), nullable=True),
        sa.Column('status', legacy_payment_status_enum, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['member_id'], ['khairat_members.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('member_id', 'year', name='uq_khairat_payments_member_year')
    )
    op.create_index(
        op.f('ix_khairat_payments_member_id'), 'khairat_payments', ['member_id'], unique=False
    )

    op.create_table(
        'khairat_uploads',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('filename', sa.String(length=255), nullable=False),
        sa.Column('uploaded_by', sa.String(length=255), nullable=True),
        sa.Column('total_records', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )

    # New-schema tables
    op.create_table(
        'khairat_ahli',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('ic_number', sa.Text(), nullable=False),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('address', sa.Text(), nullable=False),
        sa.Column('home_phone', sa.String(length=32), nullable=True),
        sa.Column('mobile_phone', sa.String(length=32), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('fee_type', fee_type_enum, nullable=False),
        sa.Column('receipt_number', sa.String(length=64), nullable=False),
        sa.Column('receipt_file', sa.String(length=512), nullable=True),
        sa.Column('amount_paid', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('registered_on', sa.Date(), nullable=True),
        sa.Column('status', application_status_enum, nullable=False),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_by', sa.String(length=255), nullable=True),
        sa.Column('reject_reason', sa.Text(), nullable=True),
        sa.Column('linked_legacy_member_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ['linked_legacy_member_id'], ['khairat_members.id'], ondelete='SET NULL'
        ),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_khairat_ahli_status'), 'khairat_ahli', ['status'], unique=False)
    op.create_index(
        op.f('ix_khairat_ahli_linked_legacy_member_id'),
        'khairat_ahli',
        ['linked_legacy_member_id'],
        unique=False,
    )

    op.create_table(
        'khairat_tanggungan',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('application_id', sa.Integer(), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('ic_number', sa.Text(), nullable=True),
        sa.Column('age', sa.Integer(), nullable=True),
        sa.Column('relationship', dependent_relationship_enum, nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['application_id'], ['khairat_ahli.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        op.f('ix_khairat_tanggungan_application_id'),
        'khairat_tanggungan',
        ['application_id'],
        unique=False,
    )

    op.create_table(
        'khairat_bayaran',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('application_id', sa.Integer(), nullable=False),
        sa.Column('year', sa.Integer(), nullable=False),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('receipt_number', sa.String(length=64), nullable=True),
        sa.Column('status', payment_status_enum, nullable=False),
        sa.Column('reviewed_by', sa.String(length=255), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['application_id'], ['khairat_ahli.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(
        op.f('ix_khairat_bayaran_application_id'),
        'khairat_bayaran',
        ['application_id'],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_khairat_bayaran_application_id'), table_name='khairat_bayaran')
    op.drop_table('khairat_bayaran')
    op.drop_index(
        op.f('ix_khairat_tanggungan_application_id'), table_name='khairat_tanggungan'
    )
    op.drop_table('khairat_tanggungan')
    op.drop_index(op.f('ix_khairat_ahli_linked_legacy_member_id'), table_name='khairat_ahli')
    op.drop_index(op.f('ix_khairat_ahli_status'), table_name='khairat_ahli')
    op.drop_table('khairat_ahli')
    op.drop_table('khairat_uploads')
    op.drop_index(op.f('ix_khairat_payments_member_id'), table_name='khairat_payments')
    op.drop_table('khairat_payments')
    op.drop_index(op.f('ix_khairat_members_ic_number'), table_name='khairat_members')
    op.drop_table('khairat_members')

    bind = op.get_bind()
    for enum_type in (
        payment_status_enum,
        dependent_relationship_enum,
        application_status_enum,
        fee_type_enum,
        legacy_payment_status_enum,
        legacy_member_status_enum,
    ):
        enum_type.drop(bind, checkfirst=True)
