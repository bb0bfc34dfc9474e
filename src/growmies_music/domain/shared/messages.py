"""Centralized message constants for error messages, validation, and user feedback."""

from __future__ import annotations


class ErrorMessages:
    """Error messages for exceptions and validation failures."""

    # Discord ID Validation Errors
    INVALID_SNOWFLAKE = "Discord snowflake ID must be positive"
    SNOWFLAKE_TOO_LARGE = "Discord snowflake ID exceeds maximum value (2^64)"

    # Session Validation Errors
    SESSION_TYPE_REQUIRES_CANNABIS_FLAG = (
        "Meditation and educational sessions must be flagged as cannabis content"
    )
    CANNABIS_SESSION_REQUIRES_21_PLUS = "Cannabis content sessions must require 21+"
    SESSION_ALREADY_ACTIVE = "There is already an active music session in this server."
    NO_ACTIVE_SESSION = "No active music session."

    # Queue Validation Errors
    CLEAR_REQUIRES_CONFIRMATION = "Clearing the queue requires explicit confirmation"

    # Volume Errors
    INVALID_VOLUME = "Volume must be between 0 and 100 (got {volume})"

    # Voting Validation Errors
    INVALID_THRESHOLD = "Threshold must be at least 1"

    # Time/Date Validation Errors
    TIMEZONE_REQUIRED_UTC_DATETIME = "UtcDateTime requires a timezone-aware datetime"

    # Config Validation Errors
    INVALID_DATABASE_URL = "Database URL must start with sqlite://"
    INVALID_LOG_LEVEL = "Invalid log level: {level}. Must be one of {valid_levels}"

    # Playback Errors
    NOTHING_PLAYING = "Nothing is currently playing."
    TRACK_NOT_FOUND = "Could not find a playable track for: {query}"
    VOICE_CONNECT_FAILED = "Could not connect to voice channel {channel_id}: {error}"
    VOICE_NOT_CONNECTED = "Not connected to voice in guild {guild_id}"
    PLAYBACK_START_FAILED = "Could not start '{title}': {error}"

    # Audio/Stream Errors

    # Bot Errors
    DISCORD_TOKEN_REQUIRED = "DISCORD__TOKEN environment variable is required"
    CONTAINER_NOT_FOUND = "Container not found on bot instance"


class LogTemplates:
    """Log message templates for structured logging.

    Use these with logger.info(), logger.error(), etc. and pass values as parameters
    for proper log formatting and structured logging support.
    """

    # Database Lifecycle
    DATABASE_INITIALIZED = "Database initialized at %s"
    DATABASE_CLOSED = "Database manager closed"

    # Session Registry
    SESSION_CREATED = "Created %s music session %s in guild %s"
    SESSION_ENDED = "Ended music session %s in guild %s (reason=%s)"
    SESSION_ALREADY_ACTIVE = "Guild %s already has an active session"
    SESSION_STATUS_UPDATED = "Session %s status -> %s"
    SESSION_VOLUME_UPDATED = "Session %s volume -> %s"
    SESSION_STALE_ENDED = "Ended %s stale sessions (reason=%s)"

    # Access Gate
    ACCESS_CACHE_HIT = "Access cache hit for user %s in guild %s"
    ACCESS_DENIED = "Cannabis access denied for user %s in guild %s (reason=%s)"
    ACCESS_GRANTED = "Cannabis access granted for user %s in guild %s"
    ACCESS_CACHE_CLEARED = "Cleared %d access cache entries for guild %s"

    # Preferences
    PREFERENCES_CREATED = "Created music preferences for user %s in guild %s"
    PREFERENCES_UPDATED = "Updated music preference %s for user %s in guild %s"
    PREFERENCES_RESET = "Reset music preferences for user %s in guild %s"

    # Voice/Audio Operations
    VOICE_CONNECTED = "Connected to voice channel %s in %s"
    VOICE_DISCONNECTED = "Disconnected from voice in guild %s"
    VOICE_MOVED = "Moved to voice channel %s"
    VOICE_CONNECTION_TIMEOUT = "Timeout connecting to channel %s"
    VOICE_NO_PERMISSION = "No permission to connect to channel %s"
    VOICE_CLIENT_ERROR = "Client error connecting: %r"
    VOICE_STALE_CLEANUP = "Found stale voice client in guild %s, cleaning up"
    VOICE_NOT_CONNECTED = "Not connected to voice in guild %s"
    VOICE_CONNECTION_LOST = "Voice connection lost in guild %s"
    VOICE_LIVE_VOLUME_UNSUPPORTED = "Live volume change not supported in guild %s"
    VOICE_GUILD_NOT_FOUND = "Guild %s not found"
    VOICE_CHANNEL_NOT_VOICE = "Channel %s is not a voice channel"
    VOICE_SELF_DEAFEN_FAILED = "Failed to self-deafen in guild %s: %s"
    VOICE_DISCONNECT_FAILED = "Failed to disconnect from voice in guild %s"

    # Playback Operations
    PLAYBACK_STARTED = "Started playing '%s' in guild %s (generation=%s)"
    PLAYBACK_STOPPED = "Stopped playback in guild %s"
    PLAYBACK_PAUSED = "Paused playback in guild %s"
    PLAYBACK_RESUMED = "Resumed playback in guild %s"
    PLAYBACK_FAILED_START = "Failed to start playback of '%s' in guild %s: %s"
    PLAYBACK_ROLLED_BACK = "Rolled back queue entry %s in guild %s"
    PLAYBACK_IGNORING_CALLBACK = "Ignoring stale track-end callback for guild %s (generation=%s, current=%s)"
    PLAYBACK_TRACK_ERROR = "Track ended with error in guild %s: %s"
    PLAYBACK_CALLBACK_ERROR = "Error in track end callback for guild %s"
    PLAYBACK_AUTO_ADVANCE_GAVE_UP = "Auto-advance gave up after %d failed attempts in guild %s"
    PLAYBACK_ENTRY_DENIED = "Skipping queue entry %s in guild %s: requester no longer allowed (%s)"

    # Track Operations
    TRACK_SKIPPED = "Skipped track: %s in guild %s"
    TRACK_FINISHED = "Track finished: %s in guild %s"
    TRACK_MARKED_FAILED = "Marked queue entry %s failed (%s)"

    # Queue Operations
    QUEUE_EMPTY = "Queue empty in guild %s"
    QUEUE_ENQUEUED = "Enqueued track '%s' at position %s in session %s"
    QUEUE_REMOVED = "Removed position %s from session %s"
    QUEUE_CLEARED = "Cleared %s tracks from session %s"
    QUEUE_SHUFFLED = "Shuffled %s tracks in session %s"

    # Voting
    VOTE_RECORDED = "Skip vote by %s in guild %s (%s/%s)"
    VOTE_THRESHOLD_MET = "Skip vote threshold met in guild %s"

    # Events
    EVENT_HANDLER_FAILED = "Event handler failed for %s"
    ANNOUNCE_FAILED = "Could not announce now playing in guild %s: %s"

    # Commands
    COMMAND_JOIN_FAILED = "Join failed in guild %s: %s"
    COMMAND_PLAY_FAILED = "Playback failed in guild %s: %s"
    VIEW_UPDATE_FAILED = "Could not update view on message %s: %s"

    # Resolution
    YTDLP_NO_URL_IN_INFO_DICT = "No URL found in info dict"
    YTDLP_NO_STREAM_URL = "No stream URL found for %s"
    YTDLP_FAILED_RESOLVE = "Failed to resolve %r"
    CACHE_HIT = "Cache hit for '%s'"

    # Application Lifecycle
    BOT_STARTING = "Starting GrowmiesNJ music engine in {environment} mode"
    BOT_SETUP = "Setting up bot..."
    BOT_CONTAINER_INITIALIZED = "Container initialized successfully"
    BOT_SETUP_COMPLETE = "Bot setup complete"
    BOT_STOPPED = "Bot stopped successfully"
    BOT_KEYBOARD_INTERRUPT = "Received keyboard interrupt, shutting down..."
    BOT_FATAL_ERROR = "Fatal error: %s"
    LOGGING_CONFIG_FALLBACK = "Could not load %s, falling back to basic config"
    SETTINGS_INVALID = "Invalid settings: %s"
    SETTINGS_OK = "Settings OK (environment=%s, database=%s)"
    BOT_SHUTTING_DOWN = "Shutting down bot..."
    BOT_CONTAINER_SHUTDOWN_ERROR = "Error during container shutdown: %s"
    BOT_SHUTDOWN_COMPLETE = "Bot shutdown complete"
    BOT_SHUTDOWN_TIMEOUT = "Graceful shutdown timed out after %.0fs"
    BOT_READY = "Bot ready as %s (%s) in %s guilds"
    BOT_COG_LOADED = "Loaded cog: %s"
    BOT_SYNCED = "Synced %s commands (%s)"
    BOT_SYNC_FAILED = "Failed to sync commands: %s"
    BOT_STALE_SESSIONS_RESET = "Ended %s stale sessions on startup"
    BOT_SLASH_COMMAND_ERROR = "Slash command error in '%s': %s"
    BOT_ERROR_MESSAGE_SEND_FAILED = "Failed to send error message to user"


class DiscordUIMessages:
    """User-facing Discord messages and responses.

    These strings are shown directly to users in Discord interactions.
    """

    # Session
    SESSION_STARTED = "🎵 Joined **{channel}** ({session_type} session)."
    SESSION_STARTED_CANNABIS = "🌿 Joined **{channel}** for a 21+ {session_type} session."
    SESSION_ENDED = "👋 Left the voice channel. Session ended."

    # Playback
    ACTION_NOW_PLAYING = "🎵 Now playing: **{title}**"
    ACTION_QUEUED = "📋 Queued **{title}** at position {position}."
    ACTION_PAUSED = "⏸️ Paused playback."
    ACTION_RESUMED = "▶️ Resumed playback."
    ACTION_SKIPPED = "⏭️ Skipped: **{title}**"
    ACTION_SKIPPED_NEXT = "⏭️ Skipped: **{title}**. Up next: **{next_title}**"
    ACTION_SHUFFLED = "🔀 Shuffled the queue."
    ACTION_TRACK_REMOVED = "🗑️ Removed the track at position {position}."
    ACTION_QUEUE_CLEARED = "🗑️ Cleared {count} tracks from the queue."
    ACTION_VOLUME_SET = "🔊 Volume set to {level}%."
    ACTION_VOLUME_SET_NEXT_TRACK = "🔊 Volume set to {level}%. It applies from the next track."
    ACTION_PREFERENCES_UPDATED = "⚙️ Music preferences updated."

    # Voting
    VOTE_RECORDED = "✅ Skip vote recorded ({votes_current}/{votes_needed})."
    VOTE_ALREADY_VOTED = "You already voted. Votes: {votes_current}/{votes_needed}"

    # State
    STATE_NOTHING_PLAYING = "Nothing is playing."
    STATE_NOTHING_PAUSED = "Nothing is paused."
    STATE_NOTHING_PLAYING_OR_PAUSED = "Nothing is playing or already paused."
    STATE_QUEUE_EMPTY = "Queue is empty."
    STATE_NOT_ENOUGH_TRACKS_TO_SHUFFLE = "Not enough tracks to shuffle."
    STATE_NO_SESSION = "There is no active music session. Use `/join` first."
    STATE_MUST_BE_IN_VOICE = "You must be in a voice channel to use this command!"
    STATE_SERVER_ONLY = "This command can only be used in a server."

    # Errors
    ERROR_ALREADY_ACTIVE = "There is already an active music session in this server."
    ERROR_TRACK_NOT_FOUND = "❌ Couldn't find a track for: {query}"
    ERROR_NO_TRACK_AT_POSITION = "No track at position {position}."
    ERROR_INVALID_VOLUME = "❌ Volume must be between 0 and 100."
    ERROR_CLEAR_NOT_CONFIRMED = "Set `confirm: True` to clear the queue."
    ERROR_COULD_NOT_JOIN_VOICE = "I couldn't join your voice channel."
    ERROR_COMMAND_FAILED = "❌ Something went wrong. Please try again later."
    ERROR_OCCURRED = "An error occurred: {error}"

    # Embeds
    EMBED_NOW_PLAYING = "🎵 Now Playing"
    EMBED_QUEUE = "📋 Queue ({total_tracks} tracks, ~{minutes} min)"
    EMBED_PREFERENCES = "⚙️ Music Preferences"
