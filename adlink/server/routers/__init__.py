"""
AdLink API Routers.

Modules:
    admin       – Counter consistency audit / repair, category creation
    auth        – Current session and sign-out
    categories  – Public category list
    dashboard   – Content-provider links and advertiser ads
    gateway     – /g/{short_code} interstitial pages
    gateway_api – JSON gateway API
    health      – Health check
"""
