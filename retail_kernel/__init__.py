"""
Retail Kernel

Transactional core of the retail back office:
- Billings and quotes with line items, created and edited atomically
- Stock deduction on sale, restoration on cancellation
- Discount-aware document totals
- Sales reports over paid billings
"""

__version__ = "0.1.0"
