"""SalonBook - salon booking API with Telegram and email notifications"""
