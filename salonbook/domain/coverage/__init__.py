"""Coverage domain - home-service zones and distance checks"""
