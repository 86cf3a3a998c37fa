"""
PDC Modules.

Domain modules built on the PDC kernel.  Each module contains:
- Domain models (the nouns)
- Workflows (state machines)
- Configuration schemas (policy and settings)
- Persistence (ORM, store, selectors)
- Services (the verbs) and batch tasks

Modules:
- Cheques: post-dated cheque registration, lifecycle, replacement and
  reporting
"""
