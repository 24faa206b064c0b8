"""
SafeHire
A job platform where every party is verified.

Architecture:
- Hosted PostgreSQL: profiles, companies, jobs, credentials, NFT certificates
- Supabase Auth: identity provider (sessions are never issued here)
- Gridlines / API Setu: company registry and Aadhaar verification
"""

__version__ = "1.0.0"
