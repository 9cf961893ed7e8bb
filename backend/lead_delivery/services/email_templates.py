"""HTML body for the product delivery email."""

from datetime import datetime, timezone
from html import escape
from typing import Optional


def render_product_delivery_email(
    customer_name: str,
    product_name: str,
    sender_name: str,
    support_url: Optional[str] = None
) -> str:
    customer = escape(customer_name)
    product = escape(product_name)

    support_html = ""
    if support_url:
        support_html = f"""
                    <p style="margin: 0 0 10px 0;">Need help? Get in touch:</p>
                    <p style="margin: 0 0 15px 0;">
                        <a href="{escape(support_url, quote=True)}" style="color: #16a34a; font-weight: bold;">Contact support</a>
                    </p>"""

    return f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <title>Your product is ready!</title>
        <style>
            body {{ font-family: Arial, sans-serif; margin: 0; padding: 0; background-color: #f4f4f4; }}
            .container {{ max-width: 600px; margin: 0 auto; background: #ffffff; border-radius: 8px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }}
            .header {{ background: linear-gradient(135deg, #22c55e 0%, #16a34a 100%); border-radius: 8px 8px 0 0; padding: 40px 0 20px 0; text-align: center; color: #ffffff; }}
            .header h1 {{ margin: 0; font-size: 32px; }}
            .content {{ padding: 30px; color: #374151; line-height: 1.6; }}
            .tip {{ background: #F0FDF4; border-left: 4px solid #16a34a; padding: 15px; margin-top: 20px; border-radius: 4px; }}
            .footer {{ background: #F9FAFB; padding: 20px; text-align: center; font-size: 12px; color: #6B7280; border-radius: 0 0 8px 8px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <div class="header">
                <h1>Product delivered!</h1>
                <p style="margin: 10px 0 0 0;">Thank you for your purchase!</p>
            </div>
            <div class="content">
                <h2>Hi, {customer}!</h2>
                <p>Thanks for choosing our product!</p>
                <p>Your purchase of <strong>{product}</strong> has been confirmed.</p>
                <p>The file is attached to this email and ready to download. Enjoy!</p>
                <div class="tip">
                    <strong>Tip:</strong> save the file somewhere safe so you can open it whenever you need.
                </div>
            </div>
            <div class="footer">{support_html}
                <p style="margin: 0;">
                    &copy; {datetime.now(timezone.utc).year} {escape(sender_name)}. All rights reserved.<br>
                    This email was sent automatically after your purchase was confirmed.
                </p>
            </div>
        </div>
    </body>
    </html>
    """
