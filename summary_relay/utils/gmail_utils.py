import smtplib
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import List

GMAIL_SMTP_HOST = "smtp.gmail.com"
GMAIL_SMTP_PORT = 465


def send_html_via_gmail(sender: str, password: str, to: List[str], subject: str, html_body: str) -> str:
    """
    HTMLメールを1通送信し、Message-ID を返す

    宛先が複数でも1回の送信で全員に送る。
    """
    msg = MIMEText(html_body, "html", "utf-8")
    msg["From"] = sender
    msg["To"] = ", ".join(to)
    msg["Subject"] = subject
    msg["Message-ID"] = make_msgid(domain=sender.rpartition("@")[2] or None)

    with smtplib.SMTP_SSL(GMAIL_SMTP_HOST, GMAIL_SMTP_PORT) as server:
        server.login(sender, password)
        server.send_message(msg, from_addr=sender, to_addrs=to)

    return msg["Message-ID"]
