# phonerelay/cli.py
# -*- coding: utf-8 -*-
"""
Administrative `flask` commands.

    flask telephony list [--user ID] [--detailed]
    flask telephony clear (--user ID | --all) [--force] [--list]
    flask users create USERNAME EMAIL [--full-name NAME]
"""
import click
from flask import current_app
from flask.cli import AppGroup

from phonerelay.extensions import db
from phonerelay.services.settings_service import SettingsService
from phonerelay.services.user_service import UserService
from phonerelay.utils.exceptions import ServiceError

telephony_cli = AppGroup('telephony', help='Inspect and purge telephony configurations.')
users_cli = AppGroup('users', help='Manage user accounts.')

SUMMARY_HEADERS = ['ID', 'User ID', 'User Email', 'Inbound Number', 'Forward To', 'SIP Endpoint', 'Call Action', 'SMS Forwarding']


def _na(value):
    return value if value not in (None, '') else 'N/A'


def _summary_row(configuration):
    return [
        configuration.id,
        configuration.user_id,
        _na(configuration.owner.email if configuration.owner else None),
        _na(configuration.inbound_number),
        _na(configuration.forward_to_phone),
        _na(configuration.sip_endpoint),
        _na(configuration.call_action),
        'Yes' if configuration.sms_forwarding_enabled else 'No',
    ]


def _detail_rows(configuration):
    def _ts(value):
        return value.strftime('%Y-%m-%d %H:%M:%S') if value else 'N/A'

    return [
        ['ID', configuration.id],
        ['User ID', configuration.user_id],
        ['User Email', _na(configuration.owner.email if configuration.owner else None)],
        ['Inbound Number', _na(configuration.inbound_number)],
        ['Forward To Phone', _na(configuration.forward_to_phone)],
        ['SIP Endpoint', _na(configuration.sip_endpoint)],
        ['SIP Username', _na(configuration.sip_username)],
        ['SIP Password', '***SET***' if configuration.has_sip_password else 'N/A'],
        ['Call Action', _na(configuration.call_action)],
        ['SMS Forwarding Enabled', 'Yes' if configuration.sms_forwarding_enabled else 'No'],
        ['Custom Greeting', _na(configuration.custom_greeting)],
        ['Created At', _ts(configuration.created_at)],
        ['Updated At', _ts(configuration.updated_at)],
    ]


def echo_table(headers, rows):
    """Prints rows as a plain fixed-width table."""
    cells = [[str(value) for value in row] for row in rows]
    widths = [len(header) for header in headers]
    for row in cells:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(value))
    separator = '+' + '+'.join('-' * (w + 2) for w in widths) + '+'

    def _line(values):
        return '| ' + ' | '.join(value.ljust(widths[i]) for i, value in enumerate(values)) + ' |'

    click.echo(separator)
    click.echo(_line(headers))
    click.echo(separator)
    for row in cells:
        click.echo(_line(row))
    click.echo(separator)


@telephony_cli.command('list')
@click.option('--user', 'user_id', type=int, default=None, help='Show settings for a specific user ID.')
@click.option('--detailed', is_flag=True, help='Show every field of every configuration.')
def list_configurations(user_id, detailed):
    """List telephony configurations for all users or one user."""
    if user_id is not None:
        configuration = SettingsService.get_configuration(user_id)
        if configuration is None:
            click.echo(f"No telephony settings found for user ID: {user_id}", err=True)
            raise SystemExit(1)
        click.echo(f"Telephony Settings for User ID {user_id}:")
        echo_table(['Field', 'Value'], _detail_rows(configuration))
        return

    configurations = SettingsService.get_all_configurations()
    if not configurations:
        click.echo("No telephony settings found.")
        return

    click.echo(f"All Telephony Settings ({len(configurations)} records):")
    if detailed:
        for configuration in configurations:
            click.echo()
            echo_table(['Field', 'Value'], _detail_rows(configuration))
    else:
        echo_table(SUMMARY_HEADERS, [_summary_row(c) for c in configurations])


@telephony_cli.command('clear')
@click.option('--user', 'user_id', type=int, default=None, help='Clear settings for a specific user ID.')
@click.option('--all', 'clear_all', is_flag=True, help='Clear all telephony settings.')
@click.option('--force', is_flag=True, help='Skip the confirmation prompt.')
@click.option('--list', 'show_list', is_flag=True, help='List current settings before clearing.')
def clear_configurations(user_id, clear_all, force, show_list):
    """Delete telephony configurations for one user or all users."""
    if user_id is None and not clear_all:
        click.echo("You must specify either --user=ID or --all", err=True)
        raise SystemExit(1)
    if user_id is not None and clear_all:
        click.echo("You cannot use both --user and --all together", err=True)
        raise SystemExit(1)

    try:
        if clear_all:
            configurations = SettingsService.get_all_configurations()
            count = len(configurations)
            if count == 0:
                click.echo("No telephony settings found to clear.")
                return
            if show_list:
                click.echo(f"Current Telephony Settings ({count} records):")
                echo_table(SUMMARY_HEADERS, [_summary_row(c) for c in configurations])
                click.echo()
            if not force and not click.confirm(f"This will delete all {count} telephony settings records. Are you sure?"):
                click.echo("Operation cancelled.")
                return
            deleted = SettingsService.delete_all_configurations()
            db.session.commit()
            current_app.logger.info(f"CLI cleared {deleted} telephony configuration(s).")
            click.echo(f"Successfully cleared all {deleted} telephony settings records.")
        else:
            configuration = SettingsService.get_configuration(user_id)
            if configuration is None:
                click.echo(f"No telephony settings found for user ID: {user_id}", err=True)
                raise SystemExit(1)
            if show_list:
                click.echo(f"Current Telephony Settings for User ID {user_id}:")
                echo_table(['Field', 'Value'], _detail_rows(configuration))
                click.echo()
            if not force and not click.confirm(f"This will delete telephony settings for user ID {user_id}. Are you sure?"):
                click.echo("Operation cancelled.")
                return
            SettingsService.delete_configuration(user_id)
            db.session.commit()
            current_app.logger.info(f"CLI cleared telephony configuration for user {user_id}.")
            click.echo(f"Successfully cleared telephony settings for user ID: {user_id}")
    except ServiceError as e:
        db.session.rollback()
        click.echo(f"An error occurred while clearing telephony settings: {e}", err=True)
        raise SystemExit(1)


@users_cli.command('create')
@click.argument('username')
@click.argument('email')
@click.option('--full-name', default=None, help='Display name.')
@click.password_option()
def create_user(username, email, full_name, password):
    """Create an active user account."""
    try:
        user = UserService.create_user(username=username, email=email, password=password, full_name=full_name)
        db.session.commit()
    except ServiceError as e:
        db.session.rollback()
        click.echo(f"Could not create user: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"Created user '{user.username}' (ID: {user.id}).")


def register_commands(app):
    app.cli.add_command(telephony_cli)
    app.cli.add_command(users_cli)
