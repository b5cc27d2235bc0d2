"""
API Routes
Projeto: AgendaPro
"""
