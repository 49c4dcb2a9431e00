"""
Games playable from the console: hangman (persisted) and trivia (in memory).
"""
