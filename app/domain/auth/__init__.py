"""Staff sign-in: email/password and POS PIN"""
