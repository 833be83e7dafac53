"""create admissions schema

Revision ID: c3d4e5f6a7b8
Revises:
Create Date: 2026-03-02

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision: str = 'c3d4e5f6a7b8'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


admin_role = postgresql.ENUM('admin', 'superadmin', name='admin_role', create_type=False)
gender_type = postgresql.ENUM('male', 'female', 'other', name='gendertype', create_type=False)
applicant_status = postgresql.ENUM(
    'draft', 'submitted', 'under_review', 'accepted', 'rejected', 'on_hold', 'pending_verification',
    name='applicantstatus', create_type=False,
)
payment_status = postgresql.ENUM(
    'pending', 'paid', 'failed', 'under_verification', 'verified',
    name='paymentstatus', create_type=False,
)
payment_method = postgresql.ENUM('gateway', 'manual_transfer', name='paymentmethod', create_type=False)
payment_record_status = postgresql.ENUM(
    'created', 'pending', 'paid', 'failed', 'under_verification', 'verified', 'rejected', 'refunded',
    name='paymentrecordstatus', create_type=False,
)
contact_status = postgresql.ENUM('new', 'contacted', 'resolved', name='contactstatus', create_type=False)

ENUMS = (
    admin_role, gender_type, applicant_status, payment_status,
    payment_method, payment_record_status, contact_status,
)


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'students',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_students_email', 'students', ['email'], unique=True)

    op.create_table(
        'admins',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('username', sa.String(100), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('name', sa.String(150), nullable=True),
        sa.Column('password_hash', sa.String(), nullable=False),
        sa.Column('role', admin_role, nullable=False, server_default='admin'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('failed_login_attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('lock_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_admins_username', 'admins', ['username'], unique=True)
    op.create_index('ix_admins_email', 'admins', ['email'], unique=True)
    op.create_index('ix_admins_role', 'admins', ['role'])

    op.create_table(
        'applicants',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('application_id', sa.String(20), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('full_name', sa.String(150), nullable=True),
        sa.Column('date_of_birth', sa.Date(), nullable=True),
        sa.Column('gender', gender_type, nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('qualification', sa.String(100), nullable=True),
        sa.Column('institution', sa.String(255), nullable=True),
        sa.Column('passing_year', sa.Integer(), nullable=True),
        sa.Column('percentage', sa.Float(), nullable=True),
        sa.Column('program_type', sa.String(100), nullable=True),
        sa.Column('course_name', sa.String(255), nullable=True),
        sa.Column('photo_ref', sa.String(500), nullable=True),
        sa.Column('id_proof_ref', sa.String(500), nullable=True),
        sa.Column('certificate_ref', sa.String(500), nullable=True),
        sa.Column('is_draft', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('current_step', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('status', applicant_status, nullable=False, server_default='draft'),
        sa.Column('payment_status', payment_status, nullable=False, server_default='pending'),
        sa.Column('payment_method', payment_method, nullable=True),
        sa.Column('application_fee', sa.Integer(), nullable=True),
        sa.Column('transfer_ref', sa.String(50), nullable=True),
        sa.Column('payment_proof_ref', sa.String(500), nullable=True),
        sa.Column('last_saved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('current_step BETWEEN 1 AND 6', name='ck_applicant_current_step'),
        sa.CheckConstraint(
            '(is_draft AND application_id IS NULL) OR (NOT is_draft AND application_id IS NOT NULL)',
            name='ck_applicant_draft_application_id',
        ),
    )
    op.create_index('ix_applicants_application_id', 'applicants', ['application_id'], unique=True)
    op.create_index('ix_applicants_email', 'applicants', ['email'])
    op.create_index('ix_applicants_is_draft', 'applicants', ['is_draft'])
    op.create_index('ix_applicants_status', 'applicants', ['status'])
    op.create_index('ix_applicants_payment_status', 'applicants', ['payment_status'])
    op.create_index('ix_applicant_email_draft_saved', 'applicants', ['email', 'is_draft', 'last_saved_at'])
    op.create_index('ix_applicant_created', 'applicants', ['created_at'])

    op.create_table(
        'applicant_notes',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'applicant_id', sa.Uuid(),
            sa.ForeignKey('applicants.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('note', sa.Text(), nullable=False),
        sa.Column('author_name', sa.String(150), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index('ix_applicant_notes_applicant_id', 'applicant_notes', ['applicant_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column(
            'applicant_id', sa.Uuid(),
            sa.ForeignKey('applicants.id', ondelete='RESTRICT'), nullable=False,
        ),
        sa.Column('student_email', sa.String(255), nullable=False),
        sa.Column('method', payment_method, nullable=False),
        sa.Column('amount', sa.Integer(), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False, server_default='INR'),
        sa.Column('status', payment_record_status, nullable=False, server_default='pending'),
        sa.Column('order_ref', sa.String(100), nullable=True, unique=True),
        sa.Column('transaction_ref', sa.String(100), nullable=True),
        sa.Column('signature', sa.String(255), nullable=True),
        sa.Column('transfer_ref', sa.String(50), nullable=True),
        sa.Column('proof_ref', sa.String(500), nullable=True),
        sa.Column('paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('verified_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('reviewer_note', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.String(150), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_payments_applicant_id', 'payments', ['applicant_id'])
    op.create_index('ix_payments_student_email', 'payments', ['student_email'])
    op.create_index('ix_payments_method', 'payments', ['method'])
    op.create_index('ix_payments_status', 'payments', ['status'])
    op.create_index('ix_payments_transfer_ref', 'payments', ['transfer_ref'])
    op.create_index('ix_payment_applicant_created', 'payments', ['applicant_id', 'created_at'])

    op.create_table(
        'contacts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(150), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=False),
        sa.Column('subject', sa.String(255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('status', contact_status, nullable=False, server_default='new'),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index('ix_contacts_status', 'contacts', ['status'])


def downgrade() -> None:
    op.drop_table('contacts')
    op.drop_table('payments')
    op.drop_table('applicant_notes')
    op.drop_table('applicants')
    op.drop_table('admins')
    op.drop_table('students')

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
