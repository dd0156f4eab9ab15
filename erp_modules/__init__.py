"""
ERP Modules - report generation built on the kernel and engines.

- reporting: ledger, statements, reconciliation, alerts, aging,
  exception report and stock summary
"""
