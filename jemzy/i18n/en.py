TEXTS_EN = {
    # --- Common ---
    "welcome": "👋 Welcome to Jemzy, {name}!\n\nShare your location to find treasure nearby.",
    "rate_limit": "⏳ Please wait a moment…",
    "error_generic": "⚠️ Something went wrong. Please try again.",
    "not_registered": "Please press /start first.",

    # --- Progression ---
    "xp_status": (
        "⭐ <b>Level {level}</b>\n"
        "XP: {xp}\n"
        "Next level in {xp_to_next} XP ({progress:.0f}%)"
    ),
    "level_up": "🎉 Level up! You reached level {level}!",

    # --- Nearby ---
    "share_location": "📍 Send your location:",
    "share_location_btn": "📍 Send location",
    "nearby_title": "🗺 <b>Within {radius} m of you</b>",
    "nearby_chest": "🎁 Chest · {coins} coins · {distance:.0f} m",
    "nearby_box": "❓ {rarity} box · {distance:.0f} m",
    "nearby_video": "🎬 {title} · {distance:.0f} m",
    "nearby_empty": "Nothing nearby right now. Try again later!",
    "share_location_first": "📍 Send your location first.",

    # --- Claims ---
    "claim_chest_btn": "🎁 Open chest ({distance:.0f} m)",
    "claim_box_btn": "❓ Open box ({distance:.0f} m)",
    "claimed": "✨ +{coins} coins, +{lanterns} lanterns, +{xp} XP",
    "already_claimed": "Someone already claimed this one.",
    "too_far": "🚶 Too far away: {message}",
}
