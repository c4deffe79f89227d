"""DepoPro - warehouse inventory tracker"""
