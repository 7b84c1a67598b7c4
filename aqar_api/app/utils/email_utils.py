from flask_mail import Message
from flask import current_app
from app import mail


def send_contact_message(name, email, subject, message, phone=None, subject_label=None):
    """
    Forward a contact-form submission to CONTACT_RECIPIENT.
    Returns True when the mail was handed to the SMTP server.
    """
    recipient = current_app.config['CONTACT_RECIPIENT']
    msg = Message(
        f'[Contact] {subject_label or subject} from {name}',
        sender=current_app.config['MAIL_DEFAULT_SENDER'],
        recipients=[recipient],
        reply_to=email
    )
    msg.body = (
        f'New message from the contact form.\n\n'
        f'  Name: {name}\n'
        f'  Email: {email}\n'
        f'  Phone: {phone if phone else "Not provided"}\n'
        f'  Subject: {subject_label or subject}\n\n'
        f'{message}\n'
    )
    try:
        mail.send(msg)
        current_app.logger.info(f"Contact message from {email} forwarded to {recipient}")
        return True
    except Exception as e:
        current_app.logger.error(f"Error while sending the contact message from {email}: {e}", exc_info=True)
        return False
