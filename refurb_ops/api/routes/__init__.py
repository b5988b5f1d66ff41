"""
API route modules, one per workflow station.

- Auth, Users, Roles: login/refresh, account administration, role catalogue
- Inward, Inspection, Repair, L2, specialist queues, Paint, QC, Outward
- Devices (inventory), Spares, Procurement (purchase orders, racks), Files
- Dashboard, Reports and Cron

Routers are included from refurb_ops.api.main (under the /api/v1 prefix).
"""
