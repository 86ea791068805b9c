"""Task workflow core: status rules, type handlers, registry and service.

Tasks move through ordered integer statuses one step at a time. Each task
type declares its final status and the custom fields required at each
status. Fields accumulate on forward moves and are never dropped, so data
captured at earlier statuses stays visible after the task advances.
"""
