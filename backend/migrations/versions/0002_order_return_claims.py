"""order return and claim fields

Revision ID: 0002_order_return_claims
Revises: 0001_initial_schema
Create Date: 2026-02-09 00:00:00.000000

Adds the return sub-fields to orders. They only carry meaning while an
order is in the returned status:
- return_type: Courier / Customer / NULL (unclassified)
- loss_amount: deducted from net profit for customer returns until the claim is Approved
- claim_status: None / Pending / Approved / Rejected / Not Required
- received_status: Pending / Received / Not Received
- bank_settled: loss reconciled against the bank settlement

Existing rows get the unclassified defaults.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0002_order_return_claims'
down_revision = '0001_initial_schema'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.add_column(sa.Column('return_type', sa.String(length=16), nullable=True))
        batch_op.add_column(sa.Column('loss_amount', sa.Numeric(12, 2), nullable=False, server_default='0'))
        batch_op.add_column(sa.Column('claim_status', sa.String(length=16), nullable=False, server_default='None'))
        batch_op.add_column(sa.Column('received_status', sa.String(length=16), nullable=False, server_default='Pending'))
        batch_op.add_column(sa.Column('bank_settled', sa.Boolean(), nullable=False, server_default=sa.false()))


def downgrade():
    with op.batch_alter_table('orders', schema=None) as batch_op:
        batch_op.drop_column('bank_settled')
        batch_op.drop_column('received_status')
        batch_op.drop_column('claim_status')
        batch_op.drop_column('loss_amount')
        batch_op.drop_column('return_type')
