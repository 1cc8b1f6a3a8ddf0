"""
Payroll Modules.

Orchestration over the payroll kernel and engines.

Modules:
- Payroll: domain models, collaborator protocols, single-employee
  calculation, monthly summary, SQLAlchemy persistence adapter
"""
