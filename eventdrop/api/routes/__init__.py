"""
Route modules, one per audience (guests, admins, health checks).
"""
