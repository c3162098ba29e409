# app/domain/messages.py
"""Reply templates. Placeholders are filled by ``t(key, **kwargs)``."""

from app.config.settings import settings

MESSAGES = {
    # ── Welcome ──────────────────────────────────────────────
    "WELCOME_INTRO": (
        "👋 Welcome to *{platform}*!\n\n"
        "I help street vendors and small shops get online in minutes, right here on WhatsApp.\n\n"
        "Say *hi* to start setting up your shop, or ask me anything about {platform}."
    ),
    "WELCOME_NEW": (
        "🎉 Welcome to *{platform}*! Let's set up your shop.\n\n"
        "It takes about 2 minutes:\n"
        "1️⃣ Shop name\n2️⃣ Category\n3️⃣ Location\n4️⃣ Products and prices\n\n"
        "*What is your shop name?*"
    ),
    "WELCOME_BACK": (
        "👋 Welcome back to *{platform}*, *{name}*!\n\n"
        "🏪 Your shop is live\n"
        "📦 Products: {product_count}\n"
        "📍 {location}\n\n"
        "What would you like to do?\n"
        "• Add products, e.g. *Samosa ₹15, Tea ₹10*\n"
        "• *show products*\n"
        "• *delete samosa*\n"
        "• *change name*\n"
        "• *check status*\n"
        "• *help*"
    ),

    # ── Onboarding steps ─────────────────────────────────────
    "ASK_NAME": "*What is your shop name?*\n\nExample: _Raj Tea Stall_",
    "NAME_INVALID": (
        "❌ Please send a shop name between {min_len} and {max_len} characters.\n\n"
        "Example: _Raj Tea Stall_"
    ),
    "ASK_CATEGORY": (
        "✅ Great! Your shop name is *{name}*.\n\n"
        "*What do you sell?* Reply with a number:\n"
        "1️⃣ Food & Beverages\n"
        "2️⃣ Clothing & Fashion\n"
        "3️⃣ Electronics & Gadgets\n"
        "4️⃣ Accessories & Others"
    ),
    "CATEGORY_INVALID": (
        "❌ Please reply with a number from 1 to 4:\n"
        "1️⃣ Food & Beverages\n"
        "2️⃣ Clothing & Fashion\n"
        "3️⃣ Electronics & Gadgets\n"
        "4️⃣ Accessories & Others"
    ),
    "ASK_LOCATION": (
        "✅ Category: *{category}*\n\n"
        "📍 *Where is your shop?*\n\n"
        "Send the area or street, e.g. _MG Road, Bangalore_"
    ),
    "LOCATION_INVALID": (
        "❌ Please send a bit more detail about your location (at least {min_len} characters).\n\n"
        "Example: _Near City Mall, Koramangala_"
    ),
    "ASK_PRODUCTS": (
        "✅ Location: *{location}*\n\n"
        "📦 *Now add your products with prices.*\n\n"
        "Examples:\n"
        "• _Samosa ₹15, Tea ₹10_\n"
        "• _₹40 Masala Dosa_\n"
        "• _Idli - 30_\n\n"
        "Send one or many at once. Type *done* when finished."
    ),
    "PRODUCTS_ADDED_DRAFT": (
        "✅ Added {count} product{plural}:\n{product_list}\n\n"
        "📦 Total so far: {total}\n\n"
        "Send more products, or type *done* to review your shop."
    ),
    "PRODUCTS_NOT_UNDERSTOOD": (
        "🤔 I couldn't find a product with a price in that.\n\n"
        "Please use a format like:\n"
        "• _Samosa ₹15_\n"
        "• _₹10 Tea_\n"
        "• _Vada - 20_\n\n"
        "Type *done* when finished."
    ),
    "PRODUCTS_NONE_YET": (
        "📦 You haven't added any products yet.\n\n"
        "Add at least one first, e.g. _Samosa ₹15_, then type *done*."
    ),
    "PRODUCTS_SKIPPED": "👍 No problem, let's move on. You can add products after your shop is live.",
    "DRAFT_PRODUCT_DELETED": "🗑️ Removed *{name}*. Products so far: {total}",
    "DRAFT_EDIT": (
        "✏️ No problem! Your products so far:\n{product_list}\n\n"
        "• Send more products to add them\n"
        "• *delete samosa* to remove one\n"
        "• *done* to review again"
    ),

    # ── Confirmation ─────────────────────────────────────────
    "PROFILE_SUMMARY": (
        "📋 *Please review your shop:*\n\n"
        "🏪 Name: *{name}*\n"
        "🏷️ Category: {category}\n"
        "📍 Location: {location}\n"
        "📦 Products:\n{product_list}\n\n"
        "Reply *yes* to go live or *no* to make changes."
    ),
    "CONFIRM_YES_NO": "Please reply *yes* to go live or *no* to make changes.",
    "PROFILE_LIVE": (
        "🎉 *Congratulations! {name} is now live on {platform}!*\n\n"
        "🔗 Your store: {store_url}\n"
        "🛒 Customers can find you at: {customer_app_url}\n"
        "💳 UPI: {upi_id}\n\n"
        "You can keep managing your shop here:\n"
        "• Add products, e.g. *Chai ₹10*\n"
        "• *show products*\n"
        "• *check status*\n"
        "• *help*"
    ),
    "PROFILE_EXISTING_BOUND": (
        "ℹ️ This number already had a shop on {platform}, so I've linked you to it "
        "and updated its product list."
    ),

    # ── Active vendor ────────────────────────────────────────
    "PRODUCTS_ADDED_LIVE": (
        "✅ Added {count} product{plural} to your shop:\n{product_list}\n\n"
        "📦 Total products: {total}\n"
        "Customers can see them now."
    ),
    "PRODUCTS_FORMAT_HELP": (
        "🤔 I didn't catch a product there.\n\n"
        "To add products send e.g. _Samosa ₹15, Tea ₹10_\n"
        "Type *help* to see everything I can do."
    ),
    "PRODUCT_DELETED": "🗑️ *{name}* removed. You now have {total} product{plural}.",
    "PRODUCT_NOT_FOUND": "❌ I couldn't find a product matching *{name}*. Type *show products* to see your list.",
    "DELETE_WHICH": "Which product should I remove? Example: *delete samosa*",
    "NO_PRODUCTS": "📦 You don't have any products yet. Add some, e.g. _Samosa ₹15_",
    "PRODUCT_LIST": "📦 *Your products ({total}):*\n{product_list}",
    "PRODUCT_LIST_EMPTY": "• No products yet",
    "ALREADY_LIVE": "✅ Your shop is already live! Send products to add more, or type *help*.",
    "RENAME_PROMPT": "✏️ Your shop is called *{name}*.\n\nSend the new name, or *cancel* to keep it.",
    "RENAME_CANCELLED": "👍 Kept the name *{name}*.",
    "RENAME_DONE": "✅ Shop renamed from *{old_name}* to *{new_name}*.",
    "SHOP_DELETE_WARNING": (
        "⚠️ *This will permanently delete your shop and all its products.*\n\n"
        "Customers will no longer find you on {platform}.\n\n"
        "To confirm, reply *YES DELETE SHOP*. Anything else cancels."
    ),
    "SHOP_DELETE_CANCELLED": "👍 Your shop was not deleted.",
    "SHOP_DELETED": (
        "🗑️ Your shop has been deleted.\n\n"
        "Thank you for using {platform}. Say *hi* anytime to open a new shop."
    ),
    "NOTHING_TO_CANCEL": "Nothing to cancel. Type *help* to see what I can do.",
    "HELP_MENU": (
        "📖 *{platform} help*\n\n"
        "• Add products: _Samosa ₹15, Tea ₹10_\n"
        "• *show products*: list your products\n"
        "• *delete samosa*: remove a product\n"
        "• *change name*: rename your shop\n"
        "• *check status*: check your shop is visible\n"
        "• *delete shop*: close your shop permanently\n\n"
        "You can also just ask, e.g. _how do customers find me?_"
    ),
    "STEP_HINT": "ℹ️ We're setting up your shop.\n\n{prompt}",

    # ── Diagnostics ──────────────────────────────────────────
    "DIAGNOSTIC_REPORT": (
        "🔍 *Shop check for {name}*\n\n"
        "{checks}\n\n"
        "{verdict}"
    ),
    "DIAGNOSTIC_OK": "✅ Everything looks good. Customers near {location} can find you.",
    "DIAGNOSTIC_ISSUES": "⚠️ Fix the items marked ❌ so customers can find you.",
    "DIAGNOSTIC_NOT_ONBOARDED": (
        "🔍 You don't have a live shop yet, so customers can't find you.\n\n"
        "Say *hi* to set one up."
    ),

    # ── Media ────────────────────────────────────────────────
    "MEDIA_TEXT_ONLY": "🙏 Please reply with text for this step.",
    "MEDIA_UNREADABLE": (
        "🙏 I couldn't read any products from that. Please type them, e.g. _Samosa ₹15_"
    ),

    # ── Failures ─────────────────────────────────────────────
    "ERROR_TRANSIENT": "⚠️ Sorry, I couldn't reach our servers just now. Please send that again in a moment.",
    "ERROR_PERMANENT": "⚠️ Sorry, that couldn't be saved. Please try again, or type *help*.",
    "SESSION_RESET": "😕 Something went wrong on our side. Let's start again, say *hi* to begin.",
}


def t(key: str, **kwargs) -> str:
    kwargs.setdefault("platform", settings.PLATFORM_NAME)
    return MESSAGES[key].format(**kwargs)


def plural(count: int) -> str:
    return "" if count == 1 else "s"


def format_product_list(products) -> str:
    if not products:
        return MESSAGES["PRODUCT_LIST_EMPTY"]
    return "\n".join(f"• {p.name}: ₹{p.price}" for p in products)
